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

Key identifiers: fingerprint and key ID.
Reference: http://tools.ietf.org/html/rfc4880#section-12.2

Both are computed from the public part of a key packet each time they are
asked for. Nothing is cached, so a packet can never carry a stale id.
"""
from pgpringlib.bytes import get_int_bytes, int2_bytes
from pgpringlib.constants import HashAlgorithm, PubKeyAlgorithm
from pgpringlib.exceptions import UnsupportedVersion, UserError
from pgpringlib.primitives import new_hash

__all__ = ('fingerprint', 'fingerprint_v4', 'format_key_id', 'key_id',
           'normalize_identifier')


def fingerprint(packet):
    """
    Returns the fingerprint bytes of a (public or secret) key packet.
    V4: SHA-1 over 0x99, the two octet body length and the public body.
    V3: MD5 over the magnitude octets of the RSA modulus and exponent.
    """
    if packet.version == 4:
        return fingerprint_v4(packet.public_body())

    if packet.version in (2, 3):
        hash_ = new_hash(HashAlgorithm.MD5)
        material = packet.material
        if packet.algorithm in PubKeyAlgorithm.RSA_ALL:
            hash_.update(get_int_bytes(int(material.n)))
            hash_.update(get_int_bytes(int(material.e)))
        elif packet.algorithm in PubKeyAlgorithm.ELGAMAL_ALL:
            # There are ElGamal v3 keys in the wild too; this is what
            # pgpdump does for them.
            hash_.update(get_int_bytes(int(material.p)))
            hash_.update(get_int_bytes(int(material.g)))
        else:
            raise UnsupportedVersion(
                'v%d key with algorithm %d' % (packet.version,
                                               packet.algorithm))
        return hash_.digest()

    raise UnsupportedVersion('key packet version %d' % (packet.version,))


def fingerprint_v4(body):
    """
    Returns the v4 fingerprint of a public key packet body. This works on
    bodies we cannot decode too.
    """
    hash_ = new_hash(HashAlgorithm.SHA1)
    hash_.update(b'\x99' + int2_bytes(len(body)))
    hash_.update(body)
    return hash_.digest()


def key_id(packet):
    """
    Returns the 8 key ID bytes of a key packet.
    """
    if packet.version == 4:
        return fingerprint(packet)[-8:]

    if packet.version in (2, 3):
        material = packet.material
        if packet.algorithm in PubKeyAlgorithm.RSA_ALL:
            value = int(material.n)
        elif packet.algorithm in PubKeyAlgorithm.ELGAMAL_ALL:
            value = int(material.p)
        else:
            raise UnsupportedVersion(
                'v%d key with algorithm %d' % (packet.version,
                                               packet.algorithm))
        return (value & 0xffffffffffffffff).to_bytes(8, 'big')

    raise UnsupportedVersion('key packet version %d' % (packet.version,))


def format_key_id(value):
    """
    Uppercase hex for key IDs and fingerprints.
    """
    return bytes(value).hex().upper()


def normalize_identifier(identifier):
    """
    Turn a user supplied key ID or fingerprint into uppercase hex without
    spaces or 0x prefix. Returns None if it does not look like one (then it
    is probably a user ID).
    """
    if isinstance(identifier, (bytes, bytearray)):
        # Hex in ascii first, raw key ID or fingerprint octets second.
        try:
            value = normalize_identifier(identifier.decode('ascii'))
        except UnicodeDecodeError:
            value = None
        if value is None and len(identifier) in (8, 20):
            value = format_key_id(identifier)
        return value
    if not isinstance(identifier, str):
        raise UserError('identifier must be a string', repr(identifier))

    value = identifier.replace(' ', '').upper()
    if value.startswith('0X'):
        value = value[2:]
    if len(value) not in (8, 16, 32, 40):
        return None
    try:
        int(value, 16)
    except ValueError:
        return None
    return value
