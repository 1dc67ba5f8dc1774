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
from unittest import TestCase

from pgpringlib.exceptions import InvalidValue, MalformedLength
from pgpringlib.mpi import MPI, decode, decode_many, encode


class Test(TestCase):
    def test_decode_rfc_examples(self):
        # http://tools.ietf.org/html/rfc4880#section-3.2
        self.assertEqual(decode(b'\x00\x01\x01'), (MPI(1), 3))
        self.assertEqual(decode(b'\x00\x09\x01\xff'), (MPI(511), 4))

    def test_decode_offset(self):
        mpi, consumed = decode(b'junk\x00\x09\x01\xff', 4)
        self.assertEqual(int(mpi), 511)
        self.assertEqual(consumed, 4)

    def test_decode_zero(self):
        mpi, consumed = decode(b'\x00\x00')
        self.assertEqual(int(mpi), 0)
        self.assertEqual(consumed, 2)

    def test_decode_truncated(self):
        self.assertRaises(MalformedLength, decode, b'\x00\x10\x01')
        self.assertRaises(MalformedLength, decode, b'\x00')

    def test_decode_bits_beyond_length(self):
        self.assertRaises(InvalidValue, decode, b'\x00\x01\x03')

    def test_decode_noncanonical_keeps_bytes(self):
        data = b'\x00\x10\x00\x01'
        mpi, consumed = decode(data)
        self.assertEqual(int(mpi), 1)
        self.assertEqual(mpi.bitlen, 16)
        self.assertFalse(mpi.canonical)
        self.assertEqual(mpi.encode(), data)

    def test_decode_many(self):
        mpis, offset = decode_many(b'\x00\x01\x01\x00\x02\x03rest', 0, 2)
        self.assertEqual([int(i) for i in mpis], [1, 3])
        self.assertEqual(offset, 6)

    def test_encode(self):
        self.assertEqual(encode(0), b'\x00\x00')
        self.assertEqual(encode(1), b'\x00\x01\x01')
        self.assertEqual(encode(511), b'\x00\x09\x01\xff')
        self.assertEqual(encode(65537), b'\x00\x11\x01\x00\x01')

    def test_negative(self):
        self.assertRaises(InvalidValue, MPI, -1)

    def test_too_small_bitlen(self):
        self.assertRaises(InvalidValue, MPI, 511, 8)

    def test_to_bytes_padded(self):
        self.assertEqual(MPI(1).to_bytes(4), b'\x00\x00\x00\x01')
        self.assertRaises(InvalidValue, MPI(65537).to_bytes, 2)

    def test_from_bytes(self):
        mpi = MPI.from_bytes(b'\x00\x40\x01')
        self.assertEqual(int(mpi), 0x4001)
        self.assertEqual(mpi.bitlen, 15)

    def test_equality(self):
        self.assertEqual(MPI(5), 5)
        self.assertEqual(MPI(5), MPI(5))
        self.assertNotEqual(MPI(5), MPI(5, 8))
