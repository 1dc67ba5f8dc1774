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

Algorithm and type numbers from RFC 4880 section 9 and 5.2, and RFC 6637
for the elliptic curves.
"""

__all__ = ('AlgoLookup', 'CompressionAlgorithm', 'HashAlgorithm',
           'KeyFlags', 'KeyType', 'PubKeyAlgorithm', 'SignatureType',
           'SubpacketType', 'SymmetricAlgorithm')


class KeyType(object):
    PUBLIC = 'public'
    SECRET = 'secret'

    ALL = (PUBLIC, SECRET)


class PubKeyAlgorithm(object):
    RSA = 1
    RSA_ENCRYPT = 2
    RSA_SIGN = 3
    ELGAMAL = 16
    DSA = 17
    ECDH = 18
    ECDSA = 19
    ELGAMAL_SIGN = 20   # formerly ElGamal Encrypt or Sign
    EDDSA = 22

    RSA_ALL = (RSA, RSA_ENCRYPT, RSA_SIGN)
    ELGAMAL_ALL = (ELGAMAL, ELGAMAL_SIGN)
    CAN_SIGN = (RSA, RSA_SIGN, DSA, ECDSA, EDDSA)


class HashAlgorithm(object):
    MD5 = 1
    SHA1 = 2
    RIPEMD160 = 3
    SHA256 = 8
    SHA384 = 9
    SHA512 = 10
    SHA224 = 11


class SymmetricAlgorithm(object):
    PLAINTEXT = 0
    IDEA = 1
    TRIPLEDES = 2
    CAST5 = 3
    BLOWFISH = 4
    AES128 = 7
    AES192 = 8
    AES256 = 9
    TWOFISH = 10


class CompressionAlgorithm(object):
    UNCOMPRESSED = 0
    ZIP = 1
    ZLIB = 2
    BZIP2 = 3


class SignatureType(object):
    BINARY = 0x00
    TEXT = 0x01
    STANDALONE = 0x02
    GENERIC_CERT = 0x10
    PERSONA_CERT = 0x11
    CASUAL_CERT = 0x12
    POSITIVE_CERT = 0x13
    SUBKEY_BINDING = 0x18
    PRIMARY_KEY_BINDING = 0x19
    DIRECT_KEY = 0x1f
    KEY_REVOCATION = 0x20
    SUBKEY_REVOCATION = 0x28
    CERT_REVOCATION = 0x30
    TIMESTAMP = 0x40
    THIRD_PARTY_CONFIRMATION = 0x50

    DOCUMENTS = (BINARY, TEXT)
    CERTIFICATIONS = (GENERIC_CERT, PERSONA_CERT, CASUAL_CERT,
                      POSITIVE_CERT, CERT_REVOCATION)
    SUBKEY_SIGNATURES = (SUBKEY_BINDING, PRIMARY_KEY_BINDING,
                         SUBKEY_REVOCATION)
    KEY_SIGNATURES = (DIRECT_KEY, KEY_REVOCATION)


class SubpacketType(object):
    CREATION_TIME = 2
    EXPIRATION_TIME = 3
    EXPORTABLE = 4
    TRUST_SIGNATURE = 5
    REGULAR_EXPRESSION = 6
    REVOCABLE = 7
    KEY_EXPIRATION_TIME = 9
    PREFERRED_SYMMETRIC = 11
    REVOCATION_KEY = 12
    ISSUER = 16
    NOTATION = 20
    PREFERRED_HASH = 21
    PREFERRED_COMPRESSION = 22
    KEYSERVER_PREFERENCES = 23
    PREFERRED_KEYSERVER = 24
    PRIMARY_USER_ID = 25
    POLICY_URI = 26
    KEY_FLAGS = 27
    SIGNERS_USER_ID = 28
    REVOCATION_REASON = 29
    FEATURES = 30
    SIGNATURE_TARGET = 31
    EMBEDDED_SIGNATURE = 32
    ISSUER_FINGERPRINT = 33


class KeyFlags(object):
    CERTIFY = 0x01
    SIGN = 0x02
    ENCRYPT_COMMUNICATIONS = 0x04
    ENCRYPT_STORAGE = 0x08


# Curve OIDs (dotted) to (name, pycryptodome curve name or None, bits).
# The OIDs are stored in the key packets without the DER tag and length.
CURVES = {
    '1.2.840.10045.3.1.7': ('NIST P-256', 'P-256', 256),
    '1.3.132.0.34': ('NIST P-384', 'P-384', 384),
    '1.3.132.0.35': ('NIST P-521', 'P-521', 521),
    '1.3.36.3.3.2.8.1.1.7': ('Brainpool P256 r1', None, 256),
    '1.3.36.3.3.2.8.1.1.11': ('Brainpool P384 r1', None, 384),
    '1.3.36.3.3.2.8.1.1.13': ('Brainpool P512 r1', None, 512),
    '1.3.6.1.4.1.11591.15.1': ('Ed25519', 'Ed25519', 256),
    '1.3.6.1.4.1.3029.1.5.1': ('Curve 25519', None, 256),
}
CURVE_OIDS = dict((value[1], key) for key, value in CURVES.items()
                  if value[1])


class AlgoLookup(object):
    """
    Mixin class containing algorithm lookup methods.
    """
    pub_algorithms = {
        1: "RSA Encrypt or Sign",
        2: "RSA Encrypt-Only",
        3: "RSA Sign-Only",
        16: "ElGamal Encrypt-Only",
        17: "DSA Digital Signature Algorithm",
        18: "Elliptic Curve",
        19: "ECDSA",
        20: "Formerly ElGamal Encrypt or Sign",
        21: "Diffie-Hellman",
        22: "EdDSA",
    }

    @classmethod
    def lookup_pub_algorithm(cls, alg):
        if 100 <= alg <= 110:
            return "Private/Experimental algorithm"
        return cls.pub_algorithms.get(alg, "Unknown")

    @classmethod
    def lookup_curve(cls, oid):
        return CURVES.get(oid, ("Unknown", None, None))

    hash_algorithms = {
        1: "MD5",
        2: "SHA1",
        3: "RIPEMD160",
        8: "SHA256",
        9: "SHA384",
        10: "SHA512",
        11: "SHA224",
    }

    @classmethod
    def lookup_hash_algorithm(cls, alg):
        # reserved values check
        if alg in (4, 5, 6, 7):
            return "Reserved"
        if 100 <= alg <= 110:
            return "Private/Experimental algorithm"
        return cls.hash_algorithms.get(alg, "Unknown")

    sym_algorithms = {
        # (Name, key length, block length)
        0: ("Plaintext or unencrypted", 0, 0),
        1: ("IDEA", 16, 8),
        2: ("Triple-DES", 24, 8),
        3: ("CAST5", 16, 8),
        4: ("Blowfish", 16, 8),
        7: ("AES with 128-bit key", 16, 16),
        8: ("AES with 192-bit key", 24, 16),
        9: ("AES with 256-bit key", 32, 16),
        10: ("Twofish with 256-bit key", 32, 16),
        11: ("Camellia with 128-bit key", 16, 16),
        12: ("Camellia with 192-bit key", 24, 16),
        13: ("Camellia with 256-bit key", 32, 16),
    }

    @classmethod
    def _lookup_sym_algorithm(cls, alg):
        return cls.sym_algorithms.get(alg, ("Unknown", 0, 0))

    @classmethod
    def lookup_sym_algorithm(cls, alg):
        return cls._lookup_sym_algorithm(alg)[0]

    @classmethod
    def lookup_sym_algorithm_key_size(cls, alg):
        return cls._lookup_sym_algorithm(alg)[1]

    @classmethod
    def lookup_sym_algorithm_iv(cls, alg):
        return cls._lookup_sym_algorithm(alg)[2]

    sig_types = {
        0x00: "Signature of a binary document",
        0x01: "Signature of a canonical text document",
        0x02: "Standalone signature",
        0x10: "Generic certification of a User ID and Public Key packet",
        0x11: "Persona certification of a User ID and Public Key packet",
        0x12: "Casual certification of a User ID and Public Key packet",
        0x13: "Positive certification of a User ID and Public Key packet",
        0x18: "Subkey Binding Signature",
        0x19: "Primary Key Binding Signature",
        0x1f: "Signature directly on a key",
        0x20: "Key revocation signature",
        0x28: "Subkey revocation signature",
        0x30: "Certification revocation signature",
        0x40: "Timestamp signature",
        0x50: "Third-Party Confirmation signature",
    }

    @classmethod
    def lookup_sig_type(cls, sig_type):
        return cls.sig_types.get(sig_type, "Unknown")
