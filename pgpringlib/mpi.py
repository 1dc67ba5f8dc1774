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

Multi-precision integers as per RFC-4880:
http://tools.ietf.org/html/rfc4880#section-3.2

    [ bit length (2 bytes, big-endian) ] [ ceil(bit length / 8) bytes ]
"""
from pgpringlib.bytes import get_int2, int2_bytes
from pgpringlib.exceptions import InvalidValue, MalformedLength

__all__ = ('MPI', 'decode', 'decode_many', 'encode')


class MPI(object):
    """
    A non-negative integer with the bit length it was declared with.

    Freshly created MPIs are canonical: the bit length is the position of
    the highest set bit. Decoded MPIs keep a (larger) declared bit length so
    re-encoding reproduces the input bytes; fingerprints depend on that.
    """
    __slots__ = ('value', 'bitlen')

    def __init__(self, value, bitlen=None):
        value = int(value)
        if value < 0:
            raise InvalidValue('negative MPI', value)
        if bitlen is None:
            bitlen = value.bit_length()
        elif bitlen < value.bit_length() or bitlen > 0xffff:
            raise InvalidValue('MPI does not fit %d bits' % (bitlen,))
        self.value = value
        self.bitlen = bitlen

    @classmethod
    def from_bytes(cls, data):
        """
        Take a native octet string (an EC point, half an EdDSA signature).
        """
        return cls(int.from_bytes(data, 'big'))

    @property
    def canonical(self):
        return self.bitlen == self.value.bit_length()

    @property
    def byte_length(self):
        return (self.bitlen + 7) // 8

    def to_bytes(self, length=None):
        """
        Get the magnitude bytes; left padded with zeroes up to length.
        """
        if length is None:
            length = self.byte_length
        try:
            return self.value.to_bytes(length, 'big')
        except OverflowError:
            raise InvalidValue('MPI does not fit %d bytes' % (length,))

    def encode(self):
        if self.value and not self.bitlen:
            raise InvalidValue('zero bit length for non-zero MPI')
        return int2_bytes(self.bitlen) + self.to_bytes()

    def __int__(self):
        return self.value

    def __index__(self):
        return self.value

    def __eq__(self, other):
        if isinstance(other, MPI):
            return (self.value, self.bitlen) == (other.value, other.bitlen)
        if isinstance(other, int):
            return self.value == other
        return NotImplemented

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        return hash(self.value)

    def __repr__(self):
        return 'MPI<0x{0:X}>'.format(self.value)


def decode(data, offset=0):
    """
    Gets a multi-precision integer from data at offset.
    Returns the MPI and the number of bytes consumed.
    """
    mpi_len = get_int2(data, offset)
    to_process = (mpi_len + 7) // 8
    start = offset + 2
    if start + to_process > len(data):
        raise MalformedLength(
            'MPI of %d bits needs %d bytes, have %d' % (
                mpi_len, to_process, len(data) - start))
    value = int.from_bytes(data[start:start + to_process], 'big')
    if value.bit_length() > mpi_len:
        raise InvalidValue('MPI has bits beyond its declared length')
    return MPI(value, mpi_len), 2 + to_process


def decode_many(data, offset, count):
    """
    Decode count consecutive MPIs. Returns (list, new offset).
    """
    mpis = []
    for i in range(count):
        mpi, consumed = decode(data, offset)
        offset += consumed
        mpis.append(mpi)
    return mpis, offset


def encode(value):
    """
    Encode an int or MPI. Ints get the canonical (minimal) bit length.
    """
    if not isinstance(value, MPI):
        value = MPI(value)
    return value.encode()
