"""User service on MongoDB, a dependency injector, and an HTTP gateway with a command line."""

__version__ = "0.1.0"