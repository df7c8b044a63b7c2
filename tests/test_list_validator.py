"""Unit tests for ListValidator."""

import pytest

from dewormer.core.list_validator import ListValidator, validate_list_file


@pytest.fixture
def valid_list(tmp_path):
    """Create a well-formed list file."""
    path = tmp_path / 'valid.txt'
    path.write_text(
        "# Description: test list\n"
        "left-pad@1.3.0\n"
        "@scope/package@2.0.0\n"
        "org.springframework:spring-core@5.3.0\n",
        encoding='utf-8')
    return path


@pytest.fixture
def invalid_list(tmp_path):
    """Create a list file with malformed and duplicate entries."""
    path = tmp_path / 'invalid.txt'
    path.write_text(
        "left-pad@1.3.0\n"
        "no-separator\n"
        "missing-version@\n"
        "@9.9.9\n"
        "left-pad@1.3.0\n"
        "odd@1.0.0 beta\n",
        encoding='utf-8')
    return path


def test_valid_list(valid_list):
    """Test validation of a well-formed list."""
    result = ListValidator().validate_file(valid_list)

    assert result.is_valid
    assert not result.has_errors()
    assert not result.has_warnings()
    assert result.stats['entry_lines'] == 3
    assert result.stats['unique_packages'] == 3


def test_invalid_list(invalid_list):
    """Test that malformed lines are reported as errors."""
    result = ListValidator().validate_file(invalid_list)

    assert not result.is_valid
    assert [e.line_number for e in result.errors] == [2, 3, 4]
    assert "Missing '@'" in result.errors[0].message
    assert result.errors[1].message == "Empty version"
    assert result.errors[2].message == "Empty package name"


def test_duplicate_and_whitespace_warnings(invalid_list):
    """Test that duplicates and odd versions are warnings."""
    result = ListValidator().validate_file(invalid_list)

    messages = [w.message for w in result.warnings]
    assert any('Duplicate entry (first seen on line 1)' in m for m in messages)
    assert any('whitespace' in m for m in messages)
    assert any('unusual characters' in m for m in messages)


def test_missing_file(tmp_path):
    """Test validation of a file that does not exist."""
    result = ListValidator().validate_file(tmp_path / 'missing.txt')

    assert not result.is_valid
    assert 'File not found' in result.errors[0].message


def test_empty_list_warns(tmp_path):
    """Test that a list with only comments is valid but warned about."""
    path = tmp_path / 'empty.txt'
    path.write_text("# nothing here\n", encoding='utf-8')

    result = ListValidator().validate_file(path)

    assert result.is_valid
    assert result.warnings[0].message == "List has no entries"


def test_validate_list_file_prints(valid_list, invalid_list, capsys):
    """Test the convenience function output and return value."""
    assert validate_list_file(str(valid_list))
    assert not validate_list_file(str(invalid_list))

    output = capsys.readouterr().out
    assert 'VALID' in output
    assert 'INVALID' in output


def test_byte_order_mark_is_ignored(tmp_path):
    """Test that a BOM-prefixed list validates like a plain one."""
    path = tmp_path / 'bom.txt'
    path.write_bytes(b'\xef\xbb\xbfleft-pad@1.2.3\n')

    result = ListValidator().validate_file(path)

    assert result.is_valid
    assert not result.has_warnings()
    assert result.stats['unique_packages'] == 1


def test_undecodable_bytes_warn(tmp_path):
    """Test that non-UTF-8 bytes are flagged on their own line only."""
    path = tmp_path / 'latin1.txt'
    path.write_bytes(b'# maintained by J\xf6rg\nleft-pad@1.2.3\n')

    result = ListValidator().validate_file(path)

    assert result.is_valid
    assert [(w.line_number, w.message) for w in result.warnings] == [
        (1, "Line contains bytes that are not valid UTF-8"),
    ]
    assert result.stats['valid_entries'] == 1
