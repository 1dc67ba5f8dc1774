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

Algorithm-specific key fields: the MPIs after the algorithm octet of a key
packet (public part) and after the S2K fields (secret part).

    RSA:      n, e                  /  d, p, q, u
    DSA:      p, q, g, y            /  x
    ElGamal:  p, g, y               /  x
    ECDSA:    curve OID, point      /  d
    EdDSA:    curve OID, point      /  seed (as "d")
    ECDH:     curve OID, point, KDF /  d

Unknown algorithms are refused here. A key we cannot even read the public
part of is of no use to anyone.
"""
from pyasn1.codec.der import decoder as der_decoder
from pyasn1.codec.der import encoder as der_encoder
from pyasn1.error import PyAsn1Error
from pyasn1.type import univ

from pgpringlib.constants import CURVES, PubKeyAlgorithm
from pgpringlib.exceptions import (
    InvalidValue, MalformedLength, MalformedPacket, UnsupportedAlgorithm)
from pgpringlib.mpi import MPI, decode_many

__all__ = ('decode_oid', 'encode_oid', 'parse_public', 'parse_secret')


def decode_oid(raw):
    """
    Turn the OID octets from a key packet into a dotted string. The packet
    omits the DER tag and length; we put them back for the decoder.
    """
    if not raw or len(raw) >= 0x7f:
        raise MalformedPacket('invalid curve OID length %d' % (len(raw),))
    try:
        oid, rest = der_decoder.decode(
            bytes((0x06, len(raw))) + bytes(raw),
            asn1Spec=univ.ObjectIdentifier())
    except PyAsn1Error as e:
        raise MalformedPacket('invalid curve OID', str(e))
    return str(oid)


def encode_oid(dotted):
    der = der_encoder.encode(univ.ObjectIdentifier(dotted))
    # Strip tag and (short form) length.
    return der[2:]


class KeyMaterial(object):
    """
    Base for the MPI sets. Subclasses list their MPI names in fields, in
    wire order.
    """
    fields = ()

    def __init__(self, **kwargs):
        for name in self.fields:
            value = kwargs.pop(name)
            if not isinstance(value, MPI):
                value = MPI(value)
            setattr(self, name, value)
        if kwargs:
            raise TypeError('unexpected fields %r' % (sorted(kwargs),))

    @classmethod
    def parse(cls, data, offset):
        mpis, offset = decode_many(data, offset, len(cls.fields))
        return cls(**dict(zip(cls.fields, mpis))), offset

    @property
    def mpis(self):
        return [getattr(self, name) for name in self.fields]

    def encode(self):
        return b''.join(mpi.encode() for mpi in self.mpis)

    def __eq__(self, other):
        if not isinstance(other, KeyMaterial):
            return NotImplemented
        return (type(self) is type(other)
                and self.encode() == other.encode())

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        return hash(self.encode())

    def __repr__(self):
        return '<%s: %s>' % (self.__class__.__name__, ', '.join(
            '%s=%d bits' % (name, getattr(self, name).bitlen)
            for name in self.fields))


class RSAPublic(KeyMaterial):
    fields = ('n', 'e')

    @property
    def bitlen(self):
        return self.n.bitlen


class DSAPublic(KeyMaterial):
    fields = ('p', 'q', 'g', 'y')

    @property
    def bitlen(self):
        return self.p.bitlen


class ElGamalPublic(KeyMaterial):
    fields = ('p', 'g', 'y')

    @property
    def bitlen(self):
        return self.p.bitlen


class ECPublic(KeyMaterial):
    """
    Curve OID followed by the public point as an MPI. For the NIST curves
    the point is 0x04 || x || y, for Ed25519 it is 0x40 || the 32 bytes of
    the compressed point.
    """
    fields = ('point',)

    def __init__(self, oid, **kwargs):
        if isinstance(oid, str):
            oid = encode_oid(oid)
        self.raw_oid = bytes(oid)
        self.oid = decode_oid(self.raw_oid)
        super(ECPublic, self).__init__(**kwargs)

    @classmethod
    def parse_oid(cls, data, offset):
        if offset >= len(data):
            raise MalformedLength('missing curve OID')
        oid_length = data[offset]
        offset += 1
        if oid_length in (0, 0xff):
            raise UnsupportedAlgorithm(
                'reserved curve OID length %d' % (oid_length,))
        if offset + oid_length > len(data):
            raise MalformedLength('curve OID runs past the packet')
        raw_oid = data[offset:offset + oid_length]
        offset += oid_length
        return raw_oid, offset

    @classmethod
    def parse(cls, data, offset):
        raw_oid, offset = cls.parse_oid(data, offset)
        mpis, offset = decode_many(data, offset, 1)
        return cls(raw_oid, point=mpis[0]), offset

    def encode(self):
        return (bytes((len(self.raw_oid),)) + self.raw_oid
                + super(ECPublic, self).encode())

    @property
    def curve(self):
        """
        The (name, pycryptodome name, bits) tuple; name is "Unknown" for
        curves not in the table.
        """
        return CURVES.get(self.oid, ('Unknown', None, None))

    @property
    def bitlen(self):
        return self.curve[2] or self.point.bitlen

    def point_bytes(self):
        return self.point.to_bytes()


class ECDSAPublic(ECPublic):
    pass


class EdDSAPublic(ECPublic):
    pass


class ECDHPublic(ECPublic):
    """
    ECDH also carries the KDF parameters: a length octet, then 0x01, the
    KDF hash id and the key wrap algorithm id. Kept as raw bytes.
    """
    def __init__(self, oid, kdf=b'\x03\x01\x08\x07', **kwargs):
        self.kdf = bytes(kdf)
        super(ECDHPublic, self).__init__(oid, **kwargs)

    @classmethod
    def parse(cls, data, offset):
        raw_oid, offset = cls.parse_oid(data, offset)
        mpis, offset = decode_many(data, offset, 1)
        if offset >= len(data):
            raise MalformedLength('missing ECDH KDF parameters')
        kdf_length = data[offset]
        if offset + 1 + kdf_length > len(data):
            raise MalformedLength('ECDH KDF parameters run past the packet')
        kdf = data[offset:offset + 1 + kdf_length]
        offset += 1 + kdf_length
        return cls(raw_oid, kdf=kdf, point=mpis[0]), offset

    def encode(self):
        return super(ECDHPublic, self).encode() + self.kdf


class RSASecret(KeyMaterial):
    # d, and p < q, and u = p^-1 mod q
    fields = ('d', 'p', 'q', 'u')


class DLSecret(KeyMaterial):
    # DSA and ElGamal exponent x.
    fields = ('x',)


class ECSecret(KeyMaterial):
    # Scalar d; for EdDSA this is the 32 byte seed.
    fields = ('d',)


PUBLIC_MATERIAL = {
    PubKeyAlgorithm.RSA: RSAPublic,
    PubKeyAlgorithm.RSA_ENCRYPT: RSAPublic,
    PubKeyAlgorithm.RSA_SIGN: RSAPublic,
    PubKeyAlgorithm.ELGAMAL: ElGamalPublic,
    PubKeyAlgorithm.ELGAMAL_SIGN: ElGamalPublic,
    PubKeyAlgorithm.DSA: DSAPublic,
    PubKeyAlgorithm.ECDH: ECDHPublic,
    PubKeyAlgorithm.ECDSA: ECDSAPublic,
    PubKeyAlgorithm.EDDSA: EdDSAPublic,
}

SECRET_MATERIAL = {
    PubKeyAlgorithm.RSA: RSASecret,
    PubKeyAlgorithm.RSA_ENCRYPT: RSASecret,
    PubKeyAlgorithm.RSA_SIGN: RSASecret,
    PubKeyAlgorithm.ELGAMAL: DLSecret,
    PubKeyAlgorithm.ELGAMAL_SIGN: DLSecret,
    PubKeyAlgorithm.DSA: DLSecret,
    PubKeyAlgorithm.ECDH: ECSecret,
    PubKeyAlgorithm.ECDSA: ECSecret,
    PubKeyAlgorithm.EDDSA: ECSecret,
}


def parse_public(algorithm, data, offset):
    """
    Returns (material, new offset) for the public fields of algorithm.
    """
    try:
        class_ = PUBLIC_MATERIAL[algorithm]
    except KeyError:
        raise UnsupportedAlgorithm(
            'public key algorithm %d' % (algorithm,))
    try:
        return class_.parse(data, offset)
    except InvalidValue as e:
        raise MalformedPacket('bad public key material', *e.args[1:])


def parse_secret(algorithm, data, offset):
    """
    Returns (material, new offset) for the plaintext secret fields.
    """
    try:
        class_ = SECRET_MATERIAL[algorithm]
    except KeyError:
        raise UnsupportedAlgorithm(
            'secret key algorithm %d' % (algorithm,))
    return class_.parse(data, offset)
