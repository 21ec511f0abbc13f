# HTTP clients for the institution backend and the image host
from src.clients.configuration import HttpConfigurationProvider
from src.clients.image_host import CloudinaryImageHost

__all__ = [
    "HttpConfigurationProvider",
    "CloudinaryImageHost",
]
