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

The asymmetric and hash primitives. Everything in here is a thin shim
around pycryptodome; the rest of the library only shapes the inputs.

    sign(hash, secret key packet) -> [MPI, ...]
    verify(hash, [MPI, ...], public key packet) -> bool

The hash object is passed in unfinalized, because PKCS#1 needs to know
which hash it is (for the DigestInfo) and DSS needs the digest.
"""
from Crypto.Hash import MD5, RIPEMD160, SHA1, SHA224, SHA256, SHA384, SHA512
from Crypto.PublicKey import DSA, ECC, RSA
from Crypto.Signature import DSS, eddsa, pkcs1_15

from pgpringlib.constants import AlgoLookup, HashAlgorithm, PubKeyAlgorithm
from pgpringlib.exceptions import (
    CryptBadKey, CryptLockedKey, InvalidValue, MalformedPacket,
    UnsupportedAlgorithm)
from pgpringlib.mpi import MPI

__all__ = ('digest', 'new_hash', 'sign', 'verify')


HASHES = {
    HashAlgorithm.MD5: MD5,
    HashAlgorithm.SHA1: SHA1,
    HashAlgorithm.RIPEMD160: RIPEMD160,
    HashAlgorithm.SHA256: SHA256,
    HashAlgorithm.SHA384: SHA384,
    HashAlgorithm.SHA512: SHA512,
    HashAlgorithm.SHA224: SHA224,
}

ED25519_OID = '1.3.6.1.4.1.11591.15.1'


def new_hash(algorithm):
    try:
        module = HASHES[algorithm]
    except KeyError:
        raise UnsupportedAlgorithm('hash algorithm %d (%s)' % (
            algorithm, AlgoLookup.lookup_hash_algorithm(algorithm)))
    return module.new()


def digest(data, algorithm):
    hash_ = new_hash(algorithm)
    hash_.update(data)
    return hash_.digest()


def _ec_point(material):
    """
    Split an uncompressed NIST curve point 0x04 || x || y.
    """
    point = material.point_bytes()
    if len(point) < 3 or point[0] != 0x04 or len(point) % 2 != 1:
        raise CryptBadKey('unsupported EC point encoding')
    size = (len(point) - 1) // 2
    return (int.from_bytes(point[1:1 + size], 'big'),
            int.from_bytes(point[1 + size:], 'big'))


def _ec_curve(material):
    name = material.curve[1]
    if not name or name == 'Ed25519':
        raise UnsupportedAlgorithm('ECDSA on curve %s' % (
            material.curve[0],))
    return name


def _ed25519_point(material):
    # 0x40 prefix, then the native 32 byte encoding.
    if material.oid != ED25519_OID:
        raise UnsupportedAlgorithm('EdDSA on curve %s' % (
            material.curve[0],))
    point = material.point_bytes()
    if len(point) != 33 or point[0] != 0x40:
        raise CryptBadKey('unsupported Ed25519 point encoding')
    return point[1:]


def public_crypto_key(packet):
    """
    Build the pycryptodome public key for a key packet.
    """
    algorithm = packet.algorithm
    material = packet.material
    try:
        if algorithm in PubKeyAlgorithm.RSA_ALL:
            return RSA.construct((int(material.n), int(material.e)))
        if algorithm == PubKeyAlgorithm.DSA:
            return DSA.construct((
                int(material.y), int(material.g), int(material.p),
                int(material.q)))
        if algorithm == PubKeyAlgorithm.ECDSA:
            x, y = _ec_point(material)
            return ECC.construct(
                curve=_ec_curve(material), point_x=x, point_y=y)
        if algorithm == PubKeyAlgorithm.EDDSA:
            return eddsa.import_public_key(_ed25519_point(material))
    except ValueError as e:
        raise CryptBadKey('cannot construct public key', str(e))
    raise UnsupportedAlgorithm('cannot sign or verify with %s' % (
        AlgoLookup.lookup_pub_algorithm(algorithm),))


def secret_crypto_key(packet):
    """
    Build the pycryptodome private key for an unlocked secret key packet.
    """
    secret = getattr(packet, 'secret_material', None)
    if secret is None:
        raise CryptLockedKey()
    algorithm = packet.algorithm
    material = packet.material
    try:
        if algorithm in PubKeyAlgorithm.RSA_ALL:
            # pycryptodome computes its own CRT coefficient.
            return RSA.construct((
                int(material.n), int(material.e), int(secret.d),
                int(secret.p), int(secret.q)))
        if algorithm == PubKeyAlgorithm.DSA:
            return DSA.construct((
                int(material.y), int(material.g), int(material.p),
                int(material.q), int(secret.x)))
        if algorithm == PubKeyAlgorithm.ECDSA:
            x, y = _ec_point(material)
            return ECC.construct(
                curve=_ec_curve(material), d=int(secret.d),
                point_x=x, point_y=y)
        if algorithm == PubKeyAlgorithm.EDDSA:
            _ed25519_point(material)
            return eddsa.import_private_key(secret.d.to_bytes(32))
    except (ValueError, InvalidValue) as e:
        raise CryptBadKey('cannot construct secret key', *e.args[-1:])
    raise UnsupportedAlgorithm('cannot sign with %s' % (
        AlgoLookup.lookup_pub_algorithm(algorithm),))


def _order_bytes(key):
    if isinstance(key, ECC.EccKey):
        return key.pointQ.size_in_bytes()
    return (int(key.q).bit_length() + 7) // 8


def sign(hash_, packet):
    """
    Sign the (unfinalized) hash with the secret key packet. Returns the
    signature MPIs as they go into the signature packet.
    """
    algorithm = packet.algorithm
    if algorithm not in PubKeyAlgorithm.CAN_SIGN:
        raise UnsupportedAlgorithm('cannot sign with %s' % (
            AlgoLookup.lookup_pub_algorithm(algorithm),))
    key = secret_crypto_key(packet)

    if algorithm in PubKeyAlgorithm.RSA_ALL:
        return [MPI.from_bytes(pkcs1_15.new(key).sign(hash_))]

    if algorithm == PubKeyAlgorithm.EDDSA:
        # OpenPGP EdDSA signs the digest, not the message.
        raw = eddsa.new(key, 'rfc8032').sign(hash_.digest())
        return [MPI.from_bytes(raw[:32]), MPI.from_bytes(raw[32:])]

    raw = DSS.new(key, 'deterministic-rfc6979').sign(hash_)
    half = len(raw) // 2
    return [MPI.from_bytes(raw[:half]), MPI.from_bytes(raw[half:])]


def verify(hash_, mpis, packet):
    """
    Check the signature MPIs against the hash with the public key packet.
    Returns False for a bad signature; raises only when the key itself is
    unusable.
    """
    algorithm = packet.algorithm
    key = public_crypto_key(packet)

    try:
        if algorithm in PubKeyAlgorithm.RSA_ALL:
            if len(mpis) != 1:
                raise MalformedPacket('RSA signature needs 1 MPI')
            signature = mpis[0].to_bytes(key.size_in_bytes())
            pkcs1_15.new(key).verify(hash_, signature)

        elif algorithm == PubKeyAlgorithm.EDDSA:
            if len(mpis) != 2:
                raise MalformedPacket('EdDSA signature needs 2 MPIs')
            signature = mpis[0].to_bytes(32) + mpis[1].to_bytes(32)
            eddsa.new(key, 'rfc8032').verify(hash_.digest(), signature)

        else:
            if len(mpis) != 2:
                raise MalformedPacket('DSA signature needs 2 MPIs')
            size = _order_bytes(key)
            signature = mpis[0].to_bytes(size) + mpis[1].to_bytes(size)
            # The deterministic scheme does not second-guess hash
            # strength or key sizes; for verification the nonce is moot.
            DSS.new(key, 'deterministic-rfc6979').verify(hash_, signature)

    except (ValueError, InvalidValue):
        return False
    return True
