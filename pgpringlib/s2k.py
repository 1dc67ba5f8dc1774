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

String-to-key: turning a passphrase into the symmetric key that wraps the
secret half of a key packet.
Reference: http://tools.ietf.org/html/rfc4880#section-3.7

Only the CFB modes that RFC 4880 uses for v4 secret keys are implemented.
The v3 "encrypt only the MPI bodies" scheme is not.
"""
from Crypto.Cipher import AES, CAST, DES3, Blowfish
from Crypto.Random import get_random_bytes

from pgpringlib.bytes import int2_bytes
from pgpringlib.constants import (
    AlgoLookup, HashAlgorithm, SymmetricAlgorithm)
from pgpringlib.exceptions import (
    CryptBadKey, CryptBadPassword, MalformedLength, UnsupportedAlgorithm)
from pgpringlib.primitives import new_hash

__all__ = ('S2K', 'S2KUsage', 'checksum', 'decrypt', 'encrypt')


class S2KUsage(object):
    NONE = 0
    ENCRYPTED_HASHED = 254  # SHA-1 check hash
    ENCRYPTED = 255         # two octet checksum

    ENCRYPTED_ALL = (ENCRYPTED_HASHED, ENCRYPTED)


# (pycryptodome module, block size)
CIPHERS = {
    SymmetricAlgorithm.TRIPLEDES: (DES3, 8),
    SymmetricAlgorithm.CAST5: (CAST, 8),
    SymmetricAlgorithm.BLOWFISH: (Blowfish, 8),
    SymmetricAlgorithm.AES128: (AES, 16),
    SymmetricAlgorithm.AES192: (AES, 16),
    SymmetricAlgorithm.AES256: (AES, 16),
}


class S2K(object):
    SIMPLE = 0
    SALTED = 1
    ITERATED = 3
    GNU_DUMMY = 101     # gnu extension: secret part is not there

    # Encoded count 0xff: 65011712 octets, which is what GnuPG uses.
    DEFAULT_COUNT = 0xff

    def __init__(self, specifier, hash_algorithm, salt=b'', count_code=0,
                 gnu_mode=None, gnu_extra=b''):
        self.specifier = specifier
        self.hash_algorithm = hash_algorithm
        self.salt = bytes(salt)
        self.count_code = count_code
        self.gnu_mode = gnu_mode
        self.gnu_extra = bytes(gnu_extra)

    @classmethod
    def new(cls, hash_algorithm=HashAlgorithm.SHA256):
        """
        Create an iterated+salted S2K with a fresh salt.
        """
        return cls(cls.ITERATED, hash_algorithm, salt=get_random_bytes(8),
                   count_code=cls.DEFAULT_COUNT)

    @classmethod
    def parse(cls, data, offset):
        """
        Returns (s2k, new offset).
        """
        if offset + 2 > len(data):
            raise MalformedLength('S2K specifier runs past the packet')
        specifier = data[offset]
        hash_algorithm = data[offset + 1]
        offset += 2

        if specifier == cls.SIMPLE:
            return cls(specifier, hash_algorithm), offset

        if specifier in (cls.SALTED, cls.ITERATED):
            salt = data[offset:offset + 8]
            offset += 8
            count_code = 0
            if specifier == cls.ITERATED:
                if offset >= len(data):
                    raise MalformedLength('S2K count runs past the packet')
                count_code = data[offset]
                offset += 1
            if len(salt) != 8:
                raise MalformedLength('S2K salt runs past the packet')
            return cls(specifier, hash_algorithm, salt=salt,
                       count_code=count_code), offset

        if specifier == cls.GNU_DUMMY:
            # "GNU" + mode: 1 = no secret key, 2 = stored on a smartcard
            # followed by a length octet and the card serial number.
            if data[offset:offset + 3] != b'GNU' or offset + 4 > len(data):
                raise UnsupportedAlgorithm('unknown gnu S2K extension')
            gnu_mode = data[offset + 3]
            offset += 4
            gnu_extra = b''
            if gnu_mode == 2 and offset < len(data):
                serial_length = min(data[offset], 16)
                gnu_extra = data[offset:offset + 1 + serial_length]
                offset += 1 + serial_length
            return cls(specifier, hash_algorithm, gnu_mode=gnu_mode,
                       gnu_extra=gnu_extra), offset

        raise UnsupportedAlgorithm('S2K specifier %d' % (specifier,))

    def encode(self):
        data = bytes((self.specifier, self.hash_algorithm))
        if self.specifier in (self.SALTED, self.ITERATED):
            data += self.salt
        if self.specifier == self.ITERATED:
            data += bytes((self.count_code,))
        if self.specifier == self.GNU_DUMMY:
            data += b'GNU' + bytes((self.gnu_mode,)) + self.gnu_extra
        return data

    @property
    def is_dummy(self):
        return self.specifier == self.GNU_DUMMY

    @property
    def count(self):
        """
        Number of octets to hash for the iterated S2K.
        """
        code = self.count_code
        return (16 + (code & 15)) << ((code >> 4) + 6)

    def derive_key(self, passphrase, key_size):
        if self.is_dummy:
            raise CryptBadKey('no secret key material (gnu-dummy S2K)')
        if isinstance(passphrase, str):
            passphrase = passphrase.encode('utf-8')

        data = passphrase
        if self.specifier in (self.SALTED, self.ITERATED):
            data = self.salt + passphrase

        result = b''
        preload = 0
        while len(result) < key_size:
            # Every next hash context is preloaded with one more zero octet.
            hash_ = new_hash(self.hash_algorithm)
            hash_.update(b'\x00' * preload)
            if self.specifier == self.ITERATED:
                self._update_iterated(hash_, data)
            else:
                hash_.update(data)
            result += hash_.digest()
            preload += 1
        return result[:key_size]

    def _update_iterated(self, hash_, data):
        # The salt+passphrase is repeated until count octets are hashed, but
        # always at least once.
        count = max(self.count, len(data))
        if not data:
            return
        block = data * (65536 // len(data) + 1)
        while count >= len(block):
            hash_.update(block)
            count -= len(block)
        hash_.update(block[:count])

    def __repr__(self):
        return '<%s: specifier %d, hash %s>' % (
            self.__class__.__name__, self.specifier,
            AlgoLookup.lookup_hash_algorithm(self.hash_algorithm))


def _new_cipher(algorithm, key, iv):
    try:
        module, block_size = CIPHERS[algorithm]
    except KeyError:
        raise UnsupportedAlgorithm(
            'symmetric algorithm %s' % (
                AlgoLookup.lookup_sym_algorithm(algorithm),))
    try:
        return module.new(key, module.MODE_CFB, iv=iv,
                          segment_size=block_size * 8)
    except ValueError as e:
        # e.g. a 3DES key that degenerates to single DES
        raise CryptBadKey('cannot use derived key', str(e))


def decrypt(algorithm, key, iv, data):
    return _new_cipher(algorithm, key, iv).decrypt(data)


def encrypt(algorithm, key, iv, data):
    return _new_cipher(algorithm, key, iv).encrypt(data)


def checksum(data):
    """
    The two octet checksum: sum of all octets, mod 65536.
    """
    return int2_bytes(sum(bytearray(data)) & 0xffff)


def strip_check(usage, plaintext):
    """
    Verify and remove the trailing checksum or SHA-1 hash of the secret
    MPIs. A mismatch after decryption means a wrong passphrase.
    """
    if usage == S2KUsage.ENCRYPTED_HASHED:
        body, check = plaintext[:-20], plaintext[-20:]
        hash_ = new_hash(HashAlgorithm.SHA1)
        hash_.update(body)
        if len(plaintext) < 20 or hash_.digest() != check:
            raise CryptBadPassword('secret key check hash mismatch')
    else:
        body, check = plaintext[:-2], plaintext[-2:]
        if len(plaintext) < 2 or checksum(body) != check:
            raise CryptBadPassword('secret key checksum mismatch')
    return body
