"""
Read page geometry from uploaded PDFs.
"""

import logging

from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

from ..exceptions import ValidationError

logger = logging.getLogger(__name__)


def read_page_sizes(file_obj):
    """
    Return [(width, height), ...] for every page of a PDF, in page order.

    The file position is restored afterwards so the file can still be saved.

    Raises:
        ValidationError: file is not a readable PDF
    """
    current_pos = file_obj.tell() if hasattr(file_obj, 'tell') else 0
    file_obj.seek(0)
    try:
        reader = PdfReader(file_obj)
        sizes = [
            (float(page.mediabox.width), float(page.mediabox.height))
            for page in reader.pages
        ]
    except (PdfReadError, ValueError, KeyError) as e:
        logger.warning(f"Could not read uploaded PDF: {e}")
        raise ValidationError('File is not a readable PDF') from e
    finally:
        file_obj.seek(current_pos)

    if not sizes:
        raise ValidationError('PDF has no pages')
    return sizes
