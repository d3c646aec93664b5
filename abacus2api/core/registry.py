"""Client registry for breaking circular imports.

This module holds the backend client so that routes can import it
without causing circular imports with the main module.
"""

# Global client instance - set by main.py during initialization
client = None


def set_client(client_instance):
    """Set the global backend client instance."""
    global client
    client = client_instance


def get_client():
    """Get the global backend client instance."""
    if client is None:
        raise RuntimeError("Backend client not initialized. Did you call set_client?")
    return client
