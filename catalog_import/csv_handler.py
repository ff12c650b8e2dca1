"""
CSV Handler Module
Handles reading uploaded CSV files and writing templates and reports, with
encoding detection and upload limits.
"""

from pathlib import Path
from typing import List, Optional

import chardet
import pandas as pd
from loguru import logger

from .exceptions import UploadRejectedError
from .models import BulkResult, ValidationError
from .template import TEMPLATE_FILENAME, generate_csv_template


DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024


class CSVHandler:
    """Handle CSV file operations for bulk uploads."""

    def __init__(self, max_file_size: int = DEFAULT_MAX_FILE_SIZE, encoding: Optional[str] = None):
        """
        Initialize CSV handler.

        Args:
            max_file_size: Largest accepted upload in bytes
            encoding: Optional encoding to use. If None, will auto-detect.
        """
        self.max_file_size = max_file_size
        self.encoding = encoding
        self.detected_encoding = None

    def detect_encoding(self, raw_data: bytes) -> str:
        """
        Detect the encoding of CSV content.

        Args:
            raw_data: Raw file bytes

        Returns:
            Detected encoding string
        """
        result = chardet.detect(raw_data[:10000])  # First 10KB is enough for detection
        encoding = result.get('encoding')
        confidence = result.get('confidence') or 0

        if not encoding:
            logger.warning("Could not detect encoding, using UTF-8")
            return 'utf-8'

        logger.info(f"Detected encoding: {encoding} (confidence: {confidence:.2%})")
        return encoding

    def read_upload(self, file_path: str) -> str:
        """
        Check an uploaded file and return its text.

        Args:
            file_path: Path to the uploaded CSV file

        Returns:
            Decoded file content

        Raises:
            FileNotFoundError: If the file does not exist
            UploadRejectedError: If the file is not a .csv or is too large
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"CSV file not found: {file_path}")

        if file_path.suffix.lower() != '.csv':
            raise UploadRejectedError(f"Only .csv files are accepted, got: {file_path.name}")

        size = file_path.stat().st_size
        if size > self.max_file_size:
            limit_mb = self.max_file_size / (1024 * 1024)
            raise UploadRejectedError(f"File size must be less than {limit_mb:g}MB (got {size / (1024 * 1024):.1f}MB)")

        logger.info(f"Reading CSV file: {file_path} ({size / 1024:.2f} KB)")
        raw_data = file_path.read_bytes()
        return self.decode(raw_data)

    def decode(self, raw_data: bytes) -> str:
        """
        Decode upload bytes, stripping a UTF-8 byte order mark.

        Args:
            raw_data: Raw file bytes

        Returns:
            Decoded text
        """
        if raw_data.startswith(b'\xef\xbb\xbf'):
            return raw_data.decode('utf-8-sig')

        if self.encoding is None:
            try:
                text = raw_data.decode('utf-8')
                self.detected_encoding = 'utf-8'
                return text
            except UnicodeDecodeError:
                logger.debug("Upload is not UTF-8, detecting encoding")

        encoding = self.encoding or self.detect_encoding(raw_data)
        self.detected_encoding = encoding

        try:
            return raw_data.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            logger.warning(f"Could not decode as {encoding}, trying UTF-8")
            return raw_data.decode('utf-8', errors='replace')

    def write_template(self, file_path: str) -> Path:
        """
        Write the upload template.

        Args:
            file_path: Output file path, or a directory to place the default file name in

        Returns:
            Path the template was written to
        """
        file_path = Path(file_path)
        if file_path.is_dir():
            file_path = file_path / TEMPLATE_FILENAME
        file_path.parent.mkdir(parents=True, exist_ok=True)

        # UTF-8 without BOM, Unix line endings
        with open(file_path, 'w', encoding='utf-8', newline='') as f:
            f.write(generate_csv_template())

        logger.info(f"Wrote upload template: {file_path}")
        return file_path

    def write_validation_report(self, errors: List[ValidationError], file_path: str) -> None:
        """
        Write validation errors to a CSV report.

        Args:
            errors: Validation errors in row order
            file_path: Output file path
        """
        df = pd.DataFrame(
            [{'row': e.row, 'field': e.field, 'message': e.message} for e in errors],
            columns=['row', 'field', 'message'],
        )
        self._write_csv(df, file_path)
        logger.info(f"Validation report saved to: {file_path}")

    def write_result_report(self, result: BulkResult, file_path: str) -> None:
        """
        Write the outcome of a creation run to a CSV report.

        Args:
            result: Result of BulkProductCreator.create_products
            file_path: Output file path
        """
        rows = []
        for success in result.successes:
            rows.append({
                'product_name': success.product_name,
                'status': 'created',
                'product_id': success.product_id,
                'variants_created': len(success.variant_ids),
                'error': '',
            })
        for failure in result.errors:
            rows.append({
                'product_name': failure.product_name,
                'status': 'failed',
                'product_id': failure.product_id or '',
                'variants_created': '',
                'error': failure.error,
            })

        df = pd.DataFrame(rows, columns=['product_name', 'status', 'product_id', 'variants_created', 'error'])
        self._write_csv(df, file_path)
        logger.info(f"Result report saved to: {file_path}")

    def _write_csv(self, df: pd.DataFrame, file_path: str) -> None:
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            df.to_csv(file_path, encoding='utf-8', index=False, lineterminator='\n')
        except Exception as e:
            logger.error(f"Error writing CSV file: {e}")
            raise
