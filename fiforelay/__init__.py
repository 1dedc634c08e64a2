"""fiforelay - relay a named pipe into an IRC channel"""

__version__ = "1.0.0"
CLIENT_NAME = f"fiforelay {__version__}"
