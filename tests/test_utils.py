import pytest

from dosdev_tool import utils
from dosdev_tool.backend.image import ImageHost


def _host_with_bstr(length: int, text: bytes = b"") -> ImageHost:
    memory = bytearray(1024)
    # BSTR at byte address 16, i.e. BPTR 4
    memory[16] = length
    memory[17:17 + len(text)] = text
    return ImageHost(memory)


def test_decode_bstr_reads_length_prefixed_name():
    host = _host_with_bstr(3, b"DH0garbage")
    assert utils.decode_bstr(host, 4) == "DH0"


def test_decode_bstr_null_and_empty_are_empty():
    host = _host_with_bstr(0, b"DH0")
    assert utils.decode_bstr(host, 0) == ""
    assert utils.decode_bstr(host, 4) == ""


def test_decode_bstr_refuses_lengths_over_capacity():
    """A name must leave room for a terminator in the destination."""
    host = _host_with_bstr(107, b"A" * 107)
    assert utils.decode_bstr(host, 4) == "A" * 107
    assert utils.decode_bstr(host, 4, capacity=107) == ""

    host = _host_with_bstr(108, b"B" * 108)
    assert utils.decode_bstr(host, 4) == ""


def test_decode_bstr_uses_latin1():
    host = _host_with_bstr(4, "Bär!".encode("latin-1"))
    assert utils.decode_bstr(host, 4) == "Bär!"


def test_strip_device_name_removes_one_trailing_colon():
    assert utils.strip_device_name("DF0:") == "DF0"
    assert utils.strip_device_name("DF0") == "DF0"
    assert utils.strip_device_name("DF0::") == "DF0:"
    assert utils.strip_device_name("") == ""


def test_is_number_accepts_ascii_digits_only():
    assert utils.is_number("101") is True
    assert utils.is_number("0") is True
    assert utils.is_number("") is False
    assert utils.is_number("-1") is False
    assert utils.is_number("DH0") is False
    assert utils.is_number("²") is False


def test_format_dostype():
    assert utils.format_dostype(0x444F5303) == "DOS\\3"
    assert utils.format_dostype(0x50465303) == "PFS\\3"
    assert utils.format_dostype(0x43443031) == "CD01"


@pytest.mark.parametrize(
    "value, expected",
    [
        ("DOS\\3", 0x444F5303),
        ("DOS\\x07", 0x444F5307),
        ("0x444F5301", 0x444F5301),
        ("CDFS", 0x43444653),
        (0x53465300, 0x53465300),
        (-1, 0xFFFFFFFF),
    ],
)
def test_parse_dostype(value, expected):
    assert utils.parse_dostype(value) == expected


def test_parse_dostype_rejects_wrong_length():
    with pytest.raises(ValueError):
        utils.parse_dostype("DOS")


def test_names_equal_ignores_ascii_case_only():
    assert utils.names_equal("dh0", "DH0")
    assert not utils.names_equal("straße", "STRASSE")
