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
"""
from pgpringlib.exceptions import MalformedLength, PacketTooLarge

__all__ = ('get_int2', 'get_int4', 'get_int_bytes', 'int2_bytes',
           'int4_bytes', 'read_fp')


def get_int2(data, offset):
    """
    Pull two bytes from data at offset and return as an integer.
    """
    if offset + 2 > len(data):
        raise MalformedLength('need 2 bytes at offset %d' % (offset,))
    return (data[offset] << 8) + data[offset + 1]


def get_int4(data, offset):
    """
    Pull four bytes from data at offset and return as an integer.
    """
    if offset + 4 > len(data):
        raise MalformedLength('need 4 bytes at offset %d' % (offset,))
    return ((data[offset] << 24) + (data[offset + 1] << 16)
            + (data[offset + 2] << 8) + data[offset + 3])


def int2_bytes(value):
    return value.to_bytes(2, 'big')


def int4_bytes(value):
    return value.to_bytes(4, 'big')


def get_int_bytes(data):
    """
    Get the big-endian byte form of an integer. Zero still takes one byte.
    """
    byte_length = (data.bit_length() + 7) // 8 or 1  # calc byte len
    return data.to_bytes(byte_length, 'big')


def read_fp(fp, max_size=None):
    """
    Read a file-like object until EOF and return the bytes.

    Similar to sendfile, but into memory. Keyrings and detached signatures
    are small; if max_size is set, larger input is refused instead of being
    slurped into memory completely.
    """
    chunks = []
    size = 0
    bufsize = 65536

    while True:
        chunk = fp.read(bufsize)
        if not chunk:
            break  # EOF
        size += len(chunk)
        if max_size is not None and size > max_size:
            raise PacketTooLarge('input exceeds %d bytes' % (max_size,))
        chunks.append(chunk)

    return b''.join(chunks)
