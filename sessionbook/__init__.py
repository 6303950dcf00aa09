"""SessionBook: booking, lifecycle and matching core for provider/requester sessions."""

__version__ = "0.1.0"
