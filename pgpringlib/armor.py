# vim: set ts=8 sw=4 sts=4 et ai tw=79:
"""
pgpring-lib -- Python OpenPGP keyring engine (Library)
Copyright (C) 2026  Walter Doekes <wdoekes>, OSSO B.V.

    This library is free software; you can redistribute it and/or modify it
    under the terms of the GNU Lesser General Public License as published by
    the Free Software Foundation; either version 3 of the License, or (at
    your option) any later version.

    This library is distributed in the hope that it will be useful, but
    WITHOUT ANY WARRANTY; without even the implied warranty of
    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU
    Lesser General Public License for more details.

    You should have received a copy of the GNU Lesser General Public
    License along with this library; if not, write to the Free Software
    Foundation, Inc., 59 Temple Place, Suite 330, Boston, MA 02111-1307,
    USA.

ASCII armor (Radix-64 with a CRC-24 checksum).
Reference: http://tools.ietf.org/html/rfc4880#section-6

The dearmoring and CRC-24 code started out in python-pgpdump by Dan McGee.
"""
import binascii
from base64 import b64decode, b64encode

from pgpringlib.exceptions import MalformedArmor

__all__ = ('PUBLIC_KEY_BLOCK', 'PRIVATE_KEY_BLOCK', 'MESSAGE', 'SIGNATURE',
           'armor', 'crc24', 'dearmor', 'is_armored')


PUBLIC_KEY_BLOCK = 'PUBLIC KEY BLOCK'
PRIVATE_KEY_BLOCK = 'PRIVATE KEY BLOCK'
MESSAGE = 'MESSAGE'
SIGNATURE = 'SIGNATURE'

MAGIC = b'-----BEGIN PGP '


def _crc24_table():
    # CRC-24-Radix-64
    # x24 + x23 + x18 + x17 + x14 + x11 + x10 + x7 + x6
    #   + x5 + x4 + x3 + x + 1 (OpenPGP)
    # 0x864CFB / 0xDF3261 / 0xC3267D
    table = []
    for byte in range(256):
        crc = byte << 16
        for i in range(8):
            crc <<= 1
            if crc & 0x1000000:
                crc ^= 0x1864cfb
        table.append(crc & 0xffffff)
    return tuple(table)


# 256 values corresponding to each possible byte
CRC24_TABLE = _crc24_table()


def crc24(data):
    """
    Implementation of the CRC-24 algorithm used by OpenPGP.
    """
    crc = 0x00b704ce
    # this saves a bunch of slower global accesses
    crc_table = CRC24_TABLE
    for byte in data:
        tbl_idx = ((crc >> 16) ^ byte) & 0xff
        crc = (crc_table[tbl_idx] ^ (crc << 8)) & 0x00ffffff
    return crc


def _to_bytes(data):
    if isinstance(data, str):
        return data.encode('ascii', 'replace')
    return bytes(data)


def is_armored(data):
    """
    True if data looks like ASCII armor rather than binary packets.
    """
    data = _to_bytes(data)
    if not data:
        return False
    # Binary OpenPGP data always has the high bit set in its first octet.
    if data[0] & 0x80:
        return False
    return MAGIC in data


def strip_magic(data):
    """
    Strip away the '-----BEGIN PGP SIGNATURE-----' and related cruft so
    we can safely base64 decode the remainder.
    """
    idx = 0
    ignore = b'-----BEGIN PGP SIGNED '

    # find our magic string, skipping our ignored string
    while True:
        idx = data.find(MAGIC, idx)
        if idx < 0 or data[idx:idx + len(ignore)] != ignore:
            break
        idx += 1

    if idx < 0:
        raise MalformedArmor('no armor header line found')

    # The data starts after the first blank line: the armor headers
    # (Version:, Comment:) end there.
    data = data[idx:].replace(b'\r\n', b'\n')
    nl_idx = data.find(b'\n\n')
    if nl_idx < 0:
        raise MalformedArmor('found magic, could not find start of data')
    # now find the end of the data.
    end_idx = data.find(b'-----', nl_idx)
    if end_idx < 0:
        raise MalformedArmor('armor tail line missing')
    return data[nl_idx:end_idx]


def split_data_crc(data):
    """
    The Radix-64 format appends any CRC checksum to the end of the data
    block, in the form '=alph', where there are always 4 ASCII characters
    corresponding to 3 digits (24 bits). Look for this special case.
    """
    # don't let newlines trip us up
    data = data.rstrip()
    if len(data) >= 5 and data[-5] == ord(b'='):
        # CRC is returned without the = and converted to a decimal
        crc = b64decode(data[-4:])
        crc = (crc[0] << 16) + (crc[1] << 8) + crc[2]
        return (data[:-5], crc)
    return (data, None)


def dearmor(data):
    """
    Returns the binary contents of the first armored block in data. The
    CRC is checked when present.
    """
    data = strip_magic(_to_bytes(data))
    try:
        data, known_crc = split_data_crc(data)
        data = b64decode(b''.join(data.split()), validate=True)
    except (binascii.Error, IndexError) as e:
        raise MalformedArmor('bad base64 in armor', str(e))
    if known_crc is not None:
        # verify it if we could find it
        actual_crc = crc24(data)
        if known_crc != actual_crc:
            raise MalformedArmor(
                'CRC failure: known 0x%x, actual 0x%x' % (
                    known_crc, actual_crc))
    return data


def armor(data, block=PUBLIC_KEY_BLOCK, headers=()):
    """
    Wrap binary data in ASCII armor of the given block type. Returns str.
    """
    lines = ['-----BEGIN PGP %s-----' % (block,)]
    lines.extend('%s: %s' % (name, value) for name, value in headers)
    lines.append('')
    encoded = b64encode(data).decode('ascii')
    lines.extend(encoded[i:i + 64] for i in range(0, len(encoded), 64))
    crc = crc24(data).to_bytes(3, 'big')
    lines.append('=' + b64encode(crc).decode('ascii'))
    lines.append('-----END PGP %s-----' % (block,))
    return '\n'.join(lines) + '\n'
