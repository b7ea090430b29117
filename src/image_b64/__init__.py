"""
Image to Base64 converter package.

Validates JPEG/PNG files by their signature bytes, encodes them as Base64
and hands the result back for copying or download as a text file. A
Streamlit front-end lives in ``image_b64.streamlit_app``.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
