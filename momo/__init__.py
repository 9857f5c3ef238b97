"""Building blocks for a WebRTC native client: options, codecs, signaling websockets, data channels and a control server."""

__version__ = "0.1.0"