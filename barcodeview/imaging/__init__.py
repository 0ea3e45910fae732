"""Imaging module for barcode generation."""

from .encoder import BitMatrix, encode
from .formats import BarcodeFormat
from .renderer import BLACK, WHITE, BarcodeImageRenderer

__all__ = ['BitMatrix', 'encode', 'BarcodeFormat', 'BLACK', 'WHITE', 'BarcodeImageRenderer']
