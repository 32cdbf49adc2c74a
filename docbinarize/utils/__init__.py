"""Utility helpers."""
from .image import imread, imsave, list_images
from .logger import get_logger

__all__ = ["imread", "imsave", "list_images", "get_logger"]
