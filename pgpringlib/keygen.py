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

Key generation. Creates v4 secret keys that GnuPG accepts:

    RSA:        RSA primary (certify, sign) + RSA subkey (encrypt)
    ECDSA:      NIST P-256/384/521 primary (certify, sign)
    EdDSA:      Ed25519 primary (certify, sign)
"""
import logging
import time

from Crypto.PublicKey import ECC, RSA
from Crypto.Random import get_random_bytes
from Crypto.Signature import eddsa
from Crypto.Util.number import inverse

from pgpringlib.constants import (
    CURVE_OIDS, CompressionAlgorithm, HashAlgorithm, KeyFlags,
    PubKeyAlgorithm, SignatureType, SubpacketType, SymmetricAlgorithm)
from pgpringlib.exceptions import UnsupportedAlgorithm, UserError
from pgpringlib.key import Key, Subkey, UserIDBinding
from pgpringlib.keymaterial import (
    ECDSAPublic, ECSecret, EdDSAPublic, RSAPublic, RSASecret)
from pgpringlib.mpi import MPI
from pgpringlib.packets import (
    SecretKeyPacket, SecretSubkeyPacket, Subpacket, UserIDPacket)
from pgpringlib.signature import SignatureEngine

__all__ = ('generate_key',)

log = logging.getLogger(__name__)

ED25519_OID = '1.3.6.1.4.1.11591.15.1'

PREFERENCES = (
    (SubpacketType.PREFERRED_SYMMETRIC, (
        SymmetricAlgorithm.AES256, SymmetricAlgorithm.AES192,
        SymmetricAlgorithm.AES128)),
    (SubpacketType.PREFERRED_HASH, (
        HashAlgorithm.SHA512, HashAlgorithm.SHA384, HashAlgorithm.SHA256,
        HashAlgorithm.SHA224)),
    (SubpacketType.PREFERRED_COMPRESSION, (
        CompressionAlgorithm.ZLIB, CompressionAlgorithm.BZIP2,
        CompressionAlgorithm.ZIP)),
    (SubpacketType.FEATURES, (0x01,)),                  # MDC
    (SubpacketType.KEYSERVER_PREFERENCES, (0x80,)),     # no-modify
)


def _rsa_material(bits):
    if bits < 1024:
        raise UserError('RSA keys need at least 1024 bits')
    key = RSA.generate(bits)
    # OpenPGP wants p < q and u = p^-1 mod q.
    p, q = sorted((int(key.p), int(key.q)))
    public = RSAPublic(n=int(key.n), e=int(key.e))
    secret = RSASecret(d=int(key.d), p=p, q=q, u=inverse(p, q))
    return public, secret


def _ecdsa_material(curve):
    try:
        oid = CURVE_OIDS[curve]
    except KeyError:
        raise UnsupportedAlgorithm('ECDSA curve %r' % (curve,))
    key = ECC.generate(curve=curve)
    size = key.pointQ.size_in_bytes()
    point = (b'\x04' + int(key.pointQ.x).to_bytes(size, 'big') +
             int(key.pointQ.y).to_bytes(size, 'big'))
    public = ECDSAPublic(oid, point=MPI.from_bytes(point))
    secret = ECSecret(d=int(key.d))
    return public, secret


def _ed25519_material():
    seed = get_random_bytes(32)
    key = eddsa.import_private_key(seed)
    # RFC 8032 point encoding: y little endian, sign of x in the top bit.
    encoded = bytearray(int(key.pointQ.y).to_bytes(32, 'little'))
    encoded[31] |= (int(key.pointQ.x) & 1) << 7
    public = EdDSAPublic(ED25519_OID, point=MPI.from_bytes(
        b'\x40' + bytes(encoded)))
    secret = ECSecret(d=MPI.from_bytes(seed))
    return public, secret


def _key_flags(flags):
    return Subpacket(SubpacketType.KEY_FLAGS, bytes((flags,)))


def generate_key(userid, algorithm=PubKeyAlgorithm.RSA, bits=2048,
                 curve=None, subkey=True, created=None, passphrase=None,
                 engine=None):
    """
    Create a secret Key with a positively certified user ID. With
    passphrase set, the secret parts are written protected; the returned
    key is unlocked either way.
    """
    if created is None:
        created = int(time.time())
    if engine is None:
        engine = SignatureEngine()

    if algorithm in (PubKeyAlgorithm.RSA, PubKeyAlgorithm.RSA_SIGN):
        public, secret = _rsa_material(bits)
    elif algorithm == PubKeyAlgorithm.ECDSA:
        public, secret = _ecdsa_material(curve or 'P-256')
    elif algorithm == PubKeyAlgorithm.EDDSA:
        if curve not in (None, 'Ed25519'):
            raise UnsupportedAlgorithm('EdDSA curve %r' % (curve,))
        public, secret = _ed25519_material()
    else:
        raise UnsupportedAlgorithm(
            'cannot generate keys for algorithm %d' % (algorithm,))

    primary = SecretKeyPacket(4, created, algorithm, public,
                              secret_material=secret)
    if passphrase is not None:
        primary = primary.protect(passphrase)

    uid = UserIDPacket(userid)
    hashed = [_key_flags(KeyFlags.CERTIFY | KeyFlags.SIGN)]
    hashed.extend(Subpacket(subtype, bytes(values))
                  for subtype, values in PREFERENCES)
    hashed.append(Subpacket(SubpacketType.PRIMARY_USER_ID, b'\x01'))
    certification = engine.sign(
        primary, SignatureType.POSITIVE_CERT, created=created,
        hashed_subpackets=hashed, primary=primary, userid=uid)

    subkeys = []
    if subkey and algorithm == PubKeyAlgorithm.RSA:
        sub_public, sub_secret = _rsa_material(bits)
        sub_packet = SecretSubkeyPacket(4, created, PubKeyAlgorithm.RSA,
                                        sub_public, secret_material=sub_secret)
        if passphrase is not None:
            sub_packet = sub_packet.protect(passphrase)
        binding = engine.sign(
            primary, SignatureType.SUBKEY_BINDING, created=created,
            hashed_subpackets=[_key_flags(
                KeyFlags.ENCRYPT_COMMUNICATIONS | KeyFlags.ENCRYPT_STORAGE)],
            primary=primary, subkey=sub_packet)
        subkeys.append(Subkey(sub_packet, [binding]))
    elif subkey:
        # An encryption subkey would be ECDH; we do not do encryption.
        log.debug('no subkey generated for algorithm %d', algorithm)

    key = Key(primary, (), [UserIDBinding(uid, [certification])], subkeys)
    log.info('generated %r', key)
    return key
