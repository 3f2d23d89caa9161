"""Loading of spreadsheets, images and PDFs into pipeline inputs."""

import io
from pathlib import Path
from typing import Any, List, Union

import cv2
import numpy as np
from openpyxl import load_workbook
from PIL import Image

from .model_client import ImageBlob
from .utils import ValidationError, validate_file_path

SPREADSHEET_EXTENSIONS = {'.xlsx', '.xlsm'}
IMAGE_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.bmp', '.tiff', '.tif', '.webp'}
PDF_EXTENSIONS = {'.pdf'}
SUPPORTED_EXTENSIONS = SPREADSHEET_EXTENSIONS | IMAGE_EXTENSIONS | PDF_EXTENSIONS

# Longest image side sent to the model
MAX_IMAGE_DIMENSION = 2000


class DocumentPreprocessor:
    """Handles conversion of uploaded files into grids and image blobs."""

    def __init__(self, max_image_dimension: int = MAX_IMAGE_DIMENSION):
        """
        Initialize the document preprocessor.

        Args:
            max_image_dimension: Images are downscaled so their longest side fits this
        """
        self.max_image_dimension = max_image_dimension

    def load_spreadsheet(self, source: Union[str, Path, bytes]) -> List[List[Any]]:
        """
        Read the first worksheet into a row-major grid of cell values.

        Args:
            source: Path to an .xlsx/.xlsm file or the file's bytes

        Returns:
            List of rows, each a list of cell values (None for empty cells)

        Raises:
            ValidationError: If the file is missing, unsupported or unreadable
        """
        if isinstance(source, (bytes, bytearray)):
            handle = io.BytesIO(source)
        else:
            handle = validate_file_path(str(source), SPREADSHEET_EXTENSIONS)

        try:
            workbook = load_workbook(handle, read_only=True, data_only=True)
        except Exception as e:
            raise ValidationError(f"Could not read spreadsheet: {e}") from e

        try:
            sheet = workbook.worksheets[0]
            title = sheet.title
            grid = [list(row) for row in sheet.iter_rows(values_only=True)]
        finally:
            workbook.close()

        print(f"  → Loaded sheet '{title}': {len(grid)} rows")
        return grid

    def load_images(self, file_paths: List[Union[str, Path]]) -> List[ImageBlob]:
        """
        Load images and PDF pages as PNG blobs for the model.

        Args:
            file_paths: Image or PDF files

        Returns:
            One ImageBlob per image or PDF page
        """
        blobs = []
        for file_path in file_paths:
            path = validate_file_path(str(file_path), IMAGE_EXTENSIONS | PDF_EXTENSIONS)
            if path.suffix.lower() in PDF_EXTENSIONS:
                pages = self._process_pdf(path)
            else:
                pages = [self._process_image(path)]

            for idx, page in enumerate(pages):
                source = path.name if len(pages) == 1 else f"{path.name}#{idx + 1}"
                blobs.append(self.encode_png(page, source))

        return blobs

    def _process_image(self, file_path: Path) -> np.ndarray:
        """Load an image file as a BGR array."""
        img_array = cv2.imread(str(file_path))

        if img_array is None:
            raise ValidationError(f"Failed to load image: {file_path}")

        print(f"  → Loaded image: shape={img_array.shape}, dtype={img_array.dtype}")
        return img_array

    def _process_pdf(self, file_path: Path) -> List[np.ndarray]:
        """
        Convert PDF pages to BGR arrays.

        Args:
            file_path: Path to PDF file

        Returns:
            List of images (one per page)
        """
        from pdf2image import convert_from_path

        try:
            images = convert_from_path(str(file_path), dpi=150, fmt='png')
        except Exception as e:
            raise ValidationError(f"Error processing PDF {file_path}: {e}") from e

        return [self.pil_to_bgr(img) for img in images]

    @staticmethod
    def pil_to_bgr(image: Image.Image) -> np.ndarray:
        """Convert a PIL image to an OpenCV BGR array."""
        return cv2.cvtColor(np.array(image.convert('RGB')), cv2.COLOR_RGB2BGR)

    def encode_png(self, image: np.ndarray, source: str = "") -> ImageBlob:
        """Resize if needed and encode as PNG."""
        resized = self.resize_for_model(image, self.max_image_dimension)
        ok, buffer = cv2.imencode('.png', resized)
        if not ok:
            raise ValidationError(f"Could not encode image {source}")
        return ImageBlob(data=buffer.tobytes(), mime_type="image/png", source=source)

    @staticmethod
    def resize_for_model(image: np.ndarray, max_dimension: int = MAX_IMAGE_DIMENSION) -> np.ndarray:
        """
        Resize image if too large, maintaining aspect ratio.

        Args:
            image: Input image
            max_dimension: Maximum width or height

        Returns:
            Resized image
        """
        h, w = image.shape[:2]

        if max(h, w) > max_dimension:
            scale = max_dimension / max(h, w)
            new_w = int(w * scale)
            new_h = int(h * scale)
            return cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_AREA)

        return image
