"""
Tests for CSV Handler Module
"""

import os
import tempfile
from pathlib import Path

import pandas as pd
import pytest

from catalog_import.csv_handler import CSVHandler
from catalog_import.exceptions import UploadRejectedError
from catalog_import.models import BulkResult, CreatedProduct, FailedProduct, ValidationError
from catalog_import.parser import CatalogCSVParser
from catalog_import.template import TEMPLATE_FILENAME


class TestCSVHandler:
    """Test cases for CSVHandler."""

    def setup_method(self):
        """Set up test fixtures."""
        self.handler = CSVHandler()
        self.content = "product_name,price,description\nCafé au lait,25000,Crème\n"

    def test_read_upload_utf8(self):
        """Test reading a UTF-8 upload."""
        with tempfile.NamedTemporaryFile(mode='wb', suffix='.csv', delete=False) as f:
            f.write(self.content.encode('utf-8'))
            temp_path = f.name

        try:
            assert self.handler.read_upload(temp_path) == self.content
        finally:
            if os.path.exists(temp_path):
                os.unlink(temp_path)

    def test_read_upload_with_bom(self):
        """Test that a UTF-8 byte order mark is stripped."""
        with tempfile.NamedTemporaryFile(mode='wb', suffix='.csv', delete=False) as f:
            f.write(self.content.encode('utf-8-sig'))
            temp_path = f.name

        try:
            text = self.handler.read_upload(temp_path)
            assert text == self.content
            assert CatalogCSVParser().parse(text).is_valid
        finally:
            if os.path.exists(temp_path):
                os.unlink(temp_path)

    def test_explicit_encoding(self):
        """Test decoding with a configured encoding."""
        handler = CSVHandler(encoding='latin-1')

        assert handler.decode(self.content.encode('latin-1')) == self.content

    def test_detects_legacy_encoding(self):
        """Test that non UTF-8 uploads are still decoded."""
        text = self.handler.decode(self.content.encode('latin-1'))

        assert text.startswith('product_name,price,description\n')
        assert self.handler.detected_encoding not in (None, 'utf-8')

    def test_rejects_non_csv(self):
        """Test that other file types are rejected."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.xlsx', delete=False) as f:
            f.write(self.content)
            temp_path = f.name

        try:
            with pytest.raises(UploadRejectedError, match='.csv'):
                self.handler.read_upload(temp_path)
        finally:
            if os.path.exists(temp_path):
                os.unlink(temp_path)

    def test_rejects_large_file(self):
        """Test the upload size ceiling."""
        handler = CSVHandler(max_file_size=16)
        with tempfile.NamedTemporaryFile(mode='w', suffix='.csv', delete=False) as f:
            f.write(self.content)
            temp_path = f.name

        try:
            with pytest.raises(UploadRejectedError, match='File size'):
                handler.read_upload(temp_path)
        finally:
            if os.path.exists(temp_path):
                os.unlink(temp_path)

    def test_file_not_found(self):
        """Test error handling for missing file."""
        with pytest.raises(FileNotFoundError):
            self.handler.read_upload('/nonexistent/file.csv')

    def test_write_template(self):
        """Test writing the template into a directory."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = self.handler.write_template(temp_dir)

            assert path == Path(temp_dir) / TEMPLATE_FILENAME
            text = self.handler.read_upload(str(path))
            assert CatalogCSVParser().parse(text).errors == []

    def test_write_validation_report(self):
        """Test the validation error report."""
        errors = [
            ValidationError(row=2, field='price', message="must be a valid non-negative number, got 'x'"),
            ValidationError(row=5, field='product_name', message='is required'),
        ]
        with tempfile.TemporaryDirectory() as temp_dir:
            report_path = os.path.join(temp_dir, 'reports', 'errors.csv')
            self.handler.write_validation_report(errors, report_path)

            df = pd.read_csv(report_path, dtype=str)
            assert list(df.columns) == ['row', 'field', 'message']
            assert df['row'].tolist() == ['2', '5']
            assert df.iloc[0]['message'] == "must be a valid non-negative number, got 'x'"

    def test_write_result_report(self):
        """Test the creation result report."""
        result = BulkResult(
            successes=[CreatedProduct('Shirt', 'p1', ('v1', 'v2'))],
            errors=[FailedProduct('Lamp', 'insert failed'), FailedProduct('Cap', 'variant failed', product_id='p2')],
        )
        with tempfile.TemporaryDirectory() as temp_dir:
            report_path = os.path.join(temp_dir, 'result.csv')
            self.handler.write_result_report(result, report_path)

            df = pd.read_csv(report_path, dtype=str, keep_default_na=False)
            assert df['product_name'].tolist() == ['Shirt', 'Lamp', 'Cap']
            assert df['status'].tolist() == ['created', 'failed', 'failed']
            assert df['product_id'].tolist() == ['p1', '', 'p2']
            assert df['variants_created'].tolist() == ['2', '', '']
