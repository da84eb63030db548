from __future__ import annotations

from i2cbridge.protocol.crc import CRC_TABLE, crc16_update


def test_crc16_empty_buffer_returns_seed():
    assert crc16_update(0xABCD, b"") == 0xABCD


def test_crc16_known_ccitt_false_vector():
    """
    CRC-16/CCITT-FALSE
    poly=0x1021, seed=0xFFFF
    ASCII "123456789" -> 0x29B1
    """
    assert crc16_update(0xFFFF, b"123456789") == 0x29B1


def test_crc16_known_xmodem_vector():
    # Same polynomial with a zero seed
    assert crc16_update(0x0000, b"123456789") == 0x31C3


def test_table_matches_bridge_firmware_table():
    assert CRC_TABLE[:4] == (0x0000, 0x1021, 0x2042, 0x3063)
    assert CRC_TABLE[255] == 0x1EF0
    assert len(CRC_TABLE) == 256


def test_crc16_is_independent_of_chunking():
    data = bytes(range(256)) + b"\x00\xff" * 40
    seed = 0x5A5A
    whole = crc16_update(seed, data)

    for split in (0, 1, 63, 64, 65, 200, len(data)):
        a, b = data[:split], data[split:]
        assert crc16_update(crc16_update(seed, a), b) == whole


def test_crc16_different_seed_changes_result():
    data = b"\x01\x02\x03"
    assert crc16_update(0xFFFF, data) != crc16_update(0x0000, data)


def test_crc16_masks_seed_to_16_bits():
    assert crc16_update(0x1FFFF, b"abc") == crc16_update(0xFFFF, b"abc")
