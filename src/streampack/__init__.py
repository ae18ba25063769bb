"""streampack: HLS adaptive-bitrate packaging for self-hosted media libraries."""

__version__ = "0.1.0"
