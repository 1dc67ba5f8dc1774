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

Packet bodies: one class per packet tag, picked through TAG_TYPES.

The packet layout follows python-pgpdump (by Dan McGee, derived from
'pgpdump' by Kazuhiko Yamamoto), but every packet here can also write its
body back. Decoded packets reproduce their input octets exactly; that is
what keeps fingerprints and signatures valid after a load/save cycle.

    packet = construct_packet(raw)      # RawPacket -> typed packet
    packet.body()                       # the body octets
    packet.to_bytes()                   # framed (new format)
"""
import bz2
import copy
import zlib
from datetime import datetime, timezone

from Crypto.Random import get_random_bytes

from pgpringlib.bytes import get_int2, get_int4, int2_bytes, int4_bytes
from pgpringlib.constants import (
    AlgoLookup, CompressionAlgorithm, HashAlgorithm, SubpacketType,
    SymmetricAlgorithm)
from pgpringlib.exceptions import (
    CryptBadKey, CryptBadPassword, CryptLockedKey, InvalidValue,
    MalformedLength, MalformedPacket, PacketError, PacketTooLarge,
    UnsupportedAlgorithm, UnsupportedError, UnsupportedVersion)
from pgpringlib.keyid import fingerprint, format_key_id, key_id
from pgpringlib.keymaterial import parse_public, parse_secret
from pgpringlib.mpi import decode as decode_mpi
from pgpringlib.packet import (
    MAX_PACKET_SIZE, PacketReader, Tag, encode_length, new_tag_length,
    tag_name, write_packet)
from pgpringlib.primitives import new_hash
from pgpringlib.s2k import (
    S2K, S2KUsage, checksum, decrypt, encrypt, strip_check)

__all__ = ('CompressedDataPacket', 'CorruptPacket', 'LiteralDataPacket',
           'MarkerPacket', 'OnePassSignaturePacket', 'OpaquePacket',
           'Packet', 'PublicKeyPacket', 'PublicSubkeyPacket',
           'SecretKeyPacket', 'SecretSubkeyPacket', 'SignaturePacket',
           'Subpacket', 'TAG_TYPES', 'TrustPacket', 'UserAttributePacket',
           'UserIDPacket', 'construct_packet', 'decode_packets',
           'parse_packets')


def utc_datetime(timestamp):
    return datetime.fromtimestamp(timestamp, timezone.utc)


class Packet(object):
    """
    The base packet object. Subclasses implement parse() (a classmethod
    taking the body octets) and body().
    """
    tag = None

    @classmethod
    def parse(cls, data):
        raise NotImplementedError()

    def body(self):
        raise NotImplementedError()

    def to_bytes(self):
        return write_packet(self.tag, self.body())

    @property
    def name(self):
        return tag_name(self.tag)

    def __eq__(self, other):
        if not isinstance(other, Packet):
            return NotImplemented
        return self.tag == other.tag and self.body() == other.body()

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        return hash((self.tag, self.body()))

    def __repr__(self):
        return '<%s: %s (%d), length %d>' % (
            self.__class__.__name__, self.name, self.tag, len(self.body()))


class OpaquePacket(Packet):
    """
    Any packet we do not interpret. The body is kept as is.
    """
    def __init__(self, tag, data):
        self.tag = tag
        self.data = bytes(data)

    @classmethod
    def parse(cls, data, tag=None):
        return cls(tag, data)

    def body(self):
        return self.data


class CorruptPacket(OpaquePacket):
    """
    Placeholder for a packet whose body could not be decoded. The assembler
    decides what to do with it; error holds the exception.
    """
    def __init__(self, tag, data, error):
        super(CorruptPacket, self).__init__(tag, data)
        self.error = error

    def __repr__(self):
        return '<%s: %s (%d), %s>' % (
            self.__class__.__name__, self.name, self.tag, self.error)


class PublicKeyPacket(Packet, AlgoLookup):
    tag = Tag.PUBLIC_KEY
    is_subkey = False
    is_secret = False

    def __init__(self, version, creation_time, algorithm, material,
                 days_valid=0):
        if version not in (2, 3, 4):
            raise UnsupportedVersion('key packet version %d' % (version,))
        self.version = version
        self.creation_time = creation_time
        self.algorithm = algorithm
        self.material = material
        self.days_valid = days_valid

    @classmethod
    def parse_public(cls, data):
        """
        Returns the constructor arguments for the public part, and the
        offset where it ended.
        """
        if not data:
            raise MalformedLength('empty key packet')
        version = data[0]
        offset = 1
        days_valid = 0
        if version in (2, 3):
            creation_time = get_int4(data, offset)
            offset += 4
            days_valid = get_int2(data, offset)
            offset += 2
        elif version == 4:
            creation_time = get_int4(data, offset)
            offset += 4
        else:
            raise UnsupportedVersion('key packet version %d' % (version,))

        if offset >= len(data):
            raise MalformedLength('key packet without algorithm')
        algorithm = data[offset]
        offset += 1
        material, offset = parse_public(algorithm, data, offset)
        kwargs = {
            'version': version, 'creation_time': creation_time,
            'algorithm': algorithm, 'material': material,
            'days_valid': days_valid,
        }
        return kwargs, offset

    @classmethod
    def parse(cls, data):
        kwargs, offset = cls.parse_public(data)
        if offset != len(data):
            raise MalformedPacket('%d trailing bytes in key packet' % (
                len(data) - offset,))
        return cls(**kwargs)

    def public_body(self):
        data = bytes((self.version,)) + int4_bytes(self.creation_time)
        if self.version in (2, 3):
            data += int2_bytes(self.days_valid)
        return data + bytes((self.algorithm,)) + self.material.encode()

    def body(self):
        return self.public_body()

    def public_packet(self):
        return self

    @property
    def fingerprint(self):
        return fingerprint(self)

    @property
    def key_id(self):
        return key_id(self)

    @property
    def key_id_hex(self):
        return format_key_id(self.key_id)

    @property
    def created(self):
        return utc_datetime(self.creation_time)

    @property
    def bitlen(self):
        return self.material.bitlen

    @property
    def pub_algorithm(self):
        return self.lookup_pub_algorithm(self.algorithm)

    def __repr__(self):
        return '<%s: 0x%s, %s, %d bits>' % (
            self.__class__.__name__, self.key_id_hex, self.pub_algorithm,
            self.bitlen)


class PublicSubkeyPacket(PublicKeyPacket):
    """
    A Public-Subkey packet (tag 14) has exactly the same format as a
    Public-Key packet, but denotes a subkey.
    """
    tag = Tag.PUBLIC_SUBKEY
    is_subkey = True


class SecretKeyPacket(PublicKeyPacket):
    """
    The public key fields, followed by the S2K usage octet and either the
    plaintext secret MPIs or the wrapped (encrypted) secret part.
    Reference: http://tools.ietf.org/html/rfc4880#section-5.5.3

    A protected packet always writes its wrapped form. unlock() returns a
    copy that also has secret_material filled in; that copy writes exactly
    the same octets.
    """
    tag = Tag.SECRET_KEY
    public_class = PublicKeyPacket
    is_secret = True

    def __init__(self, version, creation_time, algorithm, material,
                 days_valid=0, s2k_usage=S2KUsage.NONE, sym_algorithm=0,
                 s2k=None, iv=b'', encrypted=b'', secret_material=None):
        super(SecretKeyPacket, self).__init__(
            version, creation_time, algorithm, material,
            days_valid=days_valid)
        self.s2k_usage = s2k_usage
        self.sym_algorithm = sym_algorithm
        self.s2k = s2k
        self.iv = bytes(iv)
        self.encrypted = bytes(encrypted)
        self.secret_material = secret_material
        if s2k_usage == S2KUsage.NONE and secret_material is None:
            raise InvalidValue('unprotected secret key without secret')

    @classmethod
    def parse(cls, data):
        kwargs, offset = cls.parse_public(data)
        if offset >= len(data):
            raise MalformedLength('secret key packet without S2K usage')
        usage = data[offset]
        offset += 1

        if usage in S2KUsage.ENCRYPTED_ALL:
            if offset >= len(data):
                raise MalformedLength('missing symmetric algorithm')
            sym_algorithm = data[offset]
            s2k, offset = S2K.parse(data, offset + 1)
        elif usage == S2KUsage.NONE:
            sym_algorithm, s2k = SymmetricAlgorithm.PLAINTEXT, None
        else:
            # Ancient: the octet is the cipher, the key is MD5(passphrase).
            sym_algorithm = usage
            s2k = S2K(S2K.SIMPLE, HashAlgorithm.MD5)

        if usage == S2KUsage.NONE:
            secret, end = parse_secret(kwargs['algorithm'], data, offset)
            check = data[end:end + 2]
            if len(check) != 2 or end + 2 != len(data):
                raise MalformedLength('bad secret key checksum length')
            if checksum(data[offset:end]) != check:
                raise MalformedPacket('plaintext secret key checksum error')
            return cls(s2k_usage=usage, secret_material=secret, **kwargs)

        iv = b''
        if not s2k.is_dummy:
            iv_size = cls.lookup_sym_algorithm_iv(sym_algorithm)
            if not iv_size:
                raise UnsupportedAlgorithm(
                    'symmetric algorithm %d' % (sym_algorithm,))
            iv = data[offset:offset + iv_size]
            if len(iv) != iv_size:
                raise MalformedLength('secret key IV runs past the packet')
            offset += iv_size
        return cls(s2k_usage=usage, sym_algorithm=sym_algorithm, s2k=s2k,
                   iv=iv, encrypted=data[offset:], **kwargs)

    def body(self):
        data = self.public_body() + bytes((self.s2k_usage,))
        if self.s2k_usage == S2KUsage.NONE:
            secret = self.secret_material.encode()
            return data + secret + checksum(secret)
        if self.s2k_usage in S2KUsage.ENCRYPTED_ALL:
            data += bytes((self.sym_algorithm,)) + self.s2k.encode()
        return data + self.iv + self.encrypted

    @property
    def is_protected(self):
        return self.s2k_usage != S2KUsage.NONE

    @property
    def is_locked(self):
        return self.secret_material is None

    @property
    def is_dummy(self):
        return self.s2k is not None and self.s2k.is_dummy

    def public_packet(self):
        return self.public_class(
            self.version, self.creation_time, self.algorithm,
            self.material, days_valid=self.days_valid)

    def unlock(self, passphrase):
        """
        Returns a copy with the secret MPIs decrypted. Raises
        CryptBadPassword if the checksum or check hash does not match.
        """
        if not self.is_locked:
            return self
        if self.is_dummy:
            raise CryptBadKey('secret key is not available (gnu-dummy S2K)')
        if self.version != 4:
            raise UnsupportedVersion(
                'cannot unlock v%d secret keys' % (self.version,))
        if passphrase is None:
            raise CryptLockedKey()

        key_size = self.lookup_sym_algorithm_key_size(self.sym_algorithm)
        key = self.s2k.derive_key(passphrase, key_size)
        plaintext = decrypt(self.sym_algorithm, key, self.iv, self.encrypted)
        usage = self.s2k_usage
        if usage not in S2KUsage.ENCRYPTED_ALL:
            usage = S2KUsage.ENCRYPTED
        body = strip_check(usage, plaintext)

        # The two octet checksum lets one in 65536 wrong passphrases
        # through; garbage MPIs are the next line of defense.
        try:
            secret, offset = parse_secret(self.algorithm, body, 0)
        except PacketError:
            raise CryptBadPassword('secret key MPIs do not parse')
        if offset != len(body):
            raise CryptBadPassword('trailing data after secret key MPIs')

        packet = copy.copy(self)
        packet.secret_material = secret
        return packet

    def protect(self, passphrase):
        """
        Returns a copy wrapped with AES-256, an iterated and salted SHA-256
        S2K and a SHA-1 check hash. The copy stays unlocked.
        """
        if self.is_locked:
            raise CryptLockedKey('cannot protect a locked key')
        if self.version != 4:
            raise UnsupportedVersion(
                'cannot protect v%d secret keys' % (self.version,))

        sym_algorithm = SymmetricAlgorithm.AES256
        s2k = S2K.new(HashAlgorithm.SHA256)
        key = s2k.derive_key(
            passphrase, self.lookup_sym_algorithm_key_size(sym_algorithm))
        iv = get_random_bytes(self.lookup_sym_algorithm_iv(sym_algorithm))
        secret = self.secret_material.encode()
        hash_ = new_hash(HashAlgorithm.SHA1)
        hash_.update(secret)

        packet = copy.copy(self)
        packet.s2k_usage = S2KUsage.ENCRYPTED_HASHED
        packet.sym_algorithm = sym_algorithm
        packet.s2k = s2k
        packet.iv = iv
        packet.encrypted = encrypt(sym_algorithm, key, iv,
                                   secret + hash_.digest())
        return packet

    def __repr__(self):
        state = 'unprotected'
        if self.is_dummy:
            state = 'dummy'
        elif self.is_protected:
            state = 'locked' if self.is_locked else 'unlocked'
        return '<%s: 0x%s, %s, %d bits, %s>' % (
            self.__class__.__name__, self.key_id_hex, self.pub_algorithm,
            self.bitlen, state)


class SecretSubkeyPacket(SecretKeyPacket):
    tag = Tag.SECRET_SUBKEY
    public_class = PublicSubkeyPacket
    is_subkey = True


class UserIDPacket(Packet):
    """
    A user ID: UTF-8 text by convention, but the octets are what is signed,
    so those are kept.
    """
    tag = Tag.USER_ID

    def __init__(self, data):
        if isinstance(data, str):
            data = data.encode('utf-8')
        self.data = bytes(data)

    @classmethod
    def parse(cls, data):
        return cls(data)

    def body(self):
        return self.data

    @property
    def userid(self):
        return self.data.decode('utf-8', 'replace')

    def __str__(self):
        return self.userid

    def __repr__(self):
        return '<%s: %r>' % (self.__class__.__name__, self.userid)


class UserAttributePacket(Packet):
    """
    A list of (type, data) subpackets; type 1 is a JPEG image.
    """
    tag = Tag.USER_ATTRIBUTE
    IMAGE = 1

    def __init__(self, data):
        self.data = bytes(data)
        self.subpackets = []
        offset = 0
        while offset < len(self.data):
            try:
                header, length, partial = new_tag_length(self.data, offset)
            except PacketError:
                raise MalformedLength('bad user attribute subpacket length')
            offset += header
            if partial or not length or offset + length > len(self.data):
                raise MalformedLength('user attribute subpacket overflow')
            self.subpackets.append(
                (self.data[offset], self.data[offset + 1:offset + length]))
            offset += length

    @classmethod
    def parse(cls, data):
        return cls(data)

    def body(self):
        return self.data

    @property
    def userid(self):
        # What gpg shows for it.
        return '[%s]' % (', '.join(
            'image' if type_ == self.IMAGE else 'attribute %d' % (type_,)
            for type_, data in self.subpackets) or 'empty attribute',)

    def __str__(self):
        return self.userid


class Subpacket(object):
    """
    A signature subpacket containing a type, some flags, and the contained
    data. Types we do not know about are kept as they are.
    """
    CRITICAL_BIT = 0x80
    CRITICAL_MASK = 0x7f

    subpacket_types = {
        2: "Signature Creation Time",
        3: "Signature Expiration Time",
        4: "Exportable Certification",
        5: "Trust Signature",
        6: "Regular Expression",
        7: "Revocable",
        9: "Key Expiration Time",
        10: "Placeholder for backward compatibility",
        11: "Preferred Symmetric Algorithms",
        12: "Revocation Key",
        16: "Issuer",
        20: "Notation Data",
        21: "Preferred Hash Algorithms",
        22: "Preferred Compression Algorithms",
        23: "Key Server Preferences",
        24: "Preferred Key Server",
        25: "Primary User ID",
        26: "Policy URI",
        27: "Key Flags",
        28: "Signer's User ID",
        29: "Reason for Revocation",
        30: "Features",
        31: "Signature Target",
        32: "Embedded Signature",
        33: "Issuer Fingerprint",
    }

    def __init__(self, subtype, data, critical=False):
        self.subtype = subtype
        self.data = bytes(data)
        self.critical = critical

    @classmethod
    def parse_all(cls, data):
        """
        Decode a subpacket area into a list of Subpackets.
        """
        subpackets = []
        offset = 0
        while offset < len(data):
            # each subpacket is [variable length] [subtype] [data]
            try:
                sub_offset, sub_len, partial = new_tag_length(data, offset)
            except PacketError:
                raise MalformedLength('bad subpacket length')
            if partial or sub_len < 1:
                raise MalformedPacket('invalid subpacket length')
            offset += sub_offset
            if offset + sub_len > len(data):
                raise MalformedLength(
                    'Unexpected subpackets length: expected %d, got %d' % (
                        sub_len, len(data) - offset))
            raw = data[offset]
            subpackets.append(cls(
                raw & cls.CRITICAL_MASK, data[offset + 1:offset + sub_len],
                critical=bool(raw & cls.CRITICAL_BIT)))
            offset += sub_len
        return subpackets

    def encode(self):
        subtype = self.subtype
        if self.critical:
            subtype |= self.CRITICAL_BIT
        return encode_length(len(self.data) + 1) + bytes((subtype,)) + \
            self.data

    @property
    def name(self):
        if self.subtype in (0, 1, 8, 13, 14, 15, 17, 18, 19):
            return "Reserved"
        return self.subpacket_types.get(self.subtype, "Unknown")

    def __eq__(self, other):
        if not isinstance(other, Subpacket):
            return NotImplemented
        return ((self.subtype, self.data, self.critical) ==
                (other.subtype, other.data, other.critical))

    def __hash__(self):
        return hash((self.subtype, self.data, self.critical))

    def __repr__(self):
        extra = ""
        if self.critical:
            extra += "critical, "
        return "<%s: %s, %slength %d>" % (
            self.__class__.__name__, self.name, extra, len(self.data))


class SignaturePacket(Packet, AlgoLookup):
    """
    Version 3 and 4 signatures.

    The hashed subpacket area is kept as the exact octets we read: it is
    part of what was signed. Newly built signatures get it from their
    subpacket list.
    """
    tag = Tag.SIGNATURE

    def __init__(self, version, sig_type, algorithm, hash_algorithm,
                 hashed_subpackets=(), unhashed_subpackets=(), hash2=b'',
                 mpis=(), creation_time=None, issuer=None,
                 hashed_area=None, unhashed_area=None):
        if version not in (2, 3, 4):
            raise UnsupportedVersion('signature version %d' % (version,))
        self.version = version
        self.sig_type = sig_type
        self.algorithm = algorithm
        self.hash_algorithm = hash_algorithm
        self.hashed_subpackets = list(hashed_subpackets)
        self.unhashed_subpackets = list(unhashed_subpackets)
        self.hash2 = bytes(hash2)
        self.mpis = list(mpis)
        # Only for v3; v4 keeps these in subpackets.
        self._creation_time = creation_time
        self._issuer = issuer
        if hashed_area is None:
            hashed_area = b''.join(
                i.encode() for i in self.hashed_subpackets)
        if unhashed_area is None:
            unhashed_area = b''.join(
                i.encode() for i in self.unhashed_subpackets)
        self.hashed_area = bytes(hashed_area)
        self.unhashed_area = bytes(unhashed_area)

    @classmethod
    def parse(cls, data):
        if not data:
            raise MalformedLength('empty signature packet')
        version = data[0]
        offset = 1
        if version in (2, 3):
            # 00 01 02 03 04 05 06 07 08 09 0a 0b 0c 0d 0e 0f
            # |  |  [  ctime  ] [ key_id                 ] |
            # |  |-type                           pub_algo-|
            # |-hash material
            # 10 11 12
            # |  [hash2]
            # |-hash_algo
            if len(data) < 19:
                raise MalformedLength('short v3 signature packet')
            # "hash material" byte must be 0x05
            if data[offset] != 0x05:
                raise MalformedPacket('Invalid v3 signature packet')
            sig_type = data[2]
            creation_time = get_int4(data, 3)
            issuer = bytes(data[7:15])
            algorithm = data[15]
            hash_algorithm = data[16]
            hash2 = data[17:19]
            mpis = cls.parse_mpis(data, 19)
            return cls(version, sig_type, algorithm, hash_algorithm,
                       hash2=hash2, mpis=mpis, creation_time=creation_time,
                       issuer=issuer)

        if version == 4:
            # 00 01 02 03 ... <hashedsubpackets..> <subpackets..> [hash2]
            # |  |  |-hash_algo
            # |  |-pub_algo
            # |-type
            if len(data) < 6:
                raise MalformedLength('short v4 signature packet')
            sig_type = data[1]
            algorithm = data[2]
            hash_algorithm = data[3]
            offset = 4

            length = get_int2(data, offset)
            offset += 2
            hashed_area = data[offset:offset + length]
            if len(hashed_area) != length:
                raise MalformedLength('hashed subpackets run past the end')
            offset += length

            length = get_int2(data, offset)
            offset += 2
            unhashed_area = data[offset:offset + length]
            if len(unhashed_area) != length:
                raise MalformedLength('subpackets run past the end')
            offset += length

            hash2 = data[offset:offset + 2]
            if len(hash2) != 2:
                raise MalformedLength('missing signed hash value bits')
            mpis = cls.parse_mpis(data, offset + 2)
            return cls(version, sig_type, algorithm, hash_algorithm,
                       hashed_subpackets=Subpacket.parse_all(hashed_area),
                       unhashed_subpackets=Subpacket.parse_all(
                           unhashed_area),
                       hash2=hash2, mpis=mpis, hashed_area=hashed_area,
                       unhashed_area=unhashed_area)

        raise UnsupportedVersion('signature packet version %d' % (version,))

    @staticmethod
    def parse_mpis(data, offset):
        mpis = []
        while offset < len(data):
            mpi, consumed = decode_mpi(data, offset)
            offset += consumed
            mpis.append(mpi)
        if not mpis:
            raise MalformedLength('signature without signature MPIs')
        return mpis

    def hashed_data(self):
        """
        The signature fields that are hashed along with the signed data,
        before the trailer.
        """
        if self.version == 4:
            return (bytes((4, self.sig_type, self.algorithm,
                           self.hash_algorithm))
                    + int2_bytes(len(self.hashed_area)) + self.hashed_area)
        return bytes((self.sig_type,)) + int4_bytes(self._creation_time)

    def hash_trailer(self):
        """
        hashed_data() and, for v4, the 0x04 0xff length trailer.
        Reference: http://tools.ietf.org/html/rfc4880#section-5.2.4
        """
        data = self.hashed_data()
        if self.version == 4:
            data += b'\x04\xff' + int4_bytes(len(data))
        return data

    def body(self):
        mpis = b''.join(i.encode() for i in self.mpis)
        if self.version == 4:
            return (self.hashed_data() + int2_bytes(len(self.unhashed_area))
                    + self.unhashed_area + self.hash2 + mpis)
        return (bytes((self.version, 5, self.sig_type))
                + int4_bytes(self._creation_time) + self._issuer
                + bytes((self.algorithm, self.hash_algorithm))
                + self.hash2 + mpis)

    def subpackets(self, subtype, hashed_only=False):
        found = [i for i in self.hashed_subpackets if i.subtype == subtype]
        if not hashed_only:
            found.extend(
                i for i in self.unhashed_subpackets if i.subtype == subtype)
        return found

    def _first(self, subtype, hashed_only=False):
        found = self.subpackets(subtype, hashed_only=hashed_only)
        if found:
            return found[0].data
        return None

    @property
    def creation_time(self):
        if self.version != 4:
            return self._creation_time
        data = self._first(SubpacketType.CREATION_TIME, hashed_only=True)
        if data is None or len(data) != 4:
            return None
        return get_int4(data, 0)

    @property
    def created(self):
        if self.creation_time is None:
            return None
        return utc_datetime(self.creation_time)

    @property
    def expiration_seconds(self):
        data = self._first(SubpacketType.EXPIRATION_TIME, hashed_only=True)
        if data is None or len(data) != 4:
            return None
        return get_int4(data, 0)

    @property
    def issuer_fingerprint(self):
        """
        The issuer fingerprint octets (v4 keys only), or None.
        """
        data = self._first(SubpacketType.ISSUER_FINGERPRINT)
        if data and data[0] == 4 and len(data) == 21:
            return data[1:]
        return None

    @property
    def issuer(self):
        """
        The 8 octet issuer key ID, or None if there is none.
        """
        if self.version != 4:
            return self._issuer
        data = self._first(SubpacketType.ISSUER)
        if data is not None and len(data) == 8:
            return data
        fpr = self.issuer_fingerprint
        if fpr:
            return fpr[-8:]
        return None

    @property
    def issuer_hex(self):
        issuer = self.issuer
        if issuer is None:
            return None
        return format_key_id(issuer)

    @property
    def key_flags(self):
        data = self._first(SubpacketType.KEY_FLAGS, hashed_only=True)
        if not data:
            return None
        return data[0]

    @property
    def signers_userid(self):
        data = self._first(SubpacketType.SIGNERS_USER_ID, hashed_only=True)
        if data is None:
            return None
        return data.decode('utf-8', 'replace')

    @property
    def sig_type_name(self):
        return self.lookup_sig_type(self.sig_type)

    @property
    def pub_algorithm(self):
        return self.lookup_pub_algorithm(self.algorithm)

    @property
    def hash_algorithm_name(self):
        return self.lookup_hash_algorithm(self.hash_algorithm)

    def __repr__(self):
        return "<%s: 0x%02x, %s, %s, issuer %s>" % (
            self.__class__.__name__, self.sig_type, self.pub_algorithm,
            self.hash_algorithm_name, self.issuer_hex)


class OnePassSignaturePacket(Packet):
    """
    Announces the signature that follows the literal data in an inline
    signed message.
    """
    tag = Tag.ONE_PASS_SIGNATURE

    def __init__(self, sig_type, hash_algorithm, algorithm, issuer,
                 nested=True, version=3):
        if len(issuer) != 8:
            raise InvalidValue('one-pass issuer must be 8 octets')
        self.version = version
        self.sig_type = sig_type
        self.hash_algorithm = hash_algorithm
        self.algorithm = algorithm
        self.issuer = bytes(issuer)
        self.nested = nested

    @classmethod
    def parse(cls, data):
        if len(data) != 13:
            raise MalformedLength('one-pass signature must be 13 octets')
        if data[0] != 3:
            raise UnsupportedVersion('one-pass signature version %d' % (
                data[0],))
        # The last octet is 0 if another one-pass signature follows.
        return cls(data[1], data[2], data[3], data[4:12],
                   nested=bool(data[12]), version=data[0])

    def body(self):
        return (bytes((self.version, self.sig_type, self.hash_algorithm,
                       self.algorithm)) + self.issuer
                + bytes((int(self.nested),)))


class LiteralDataPacket(Packet):
    """
    Format octet ('b'inary, 't'ext, 'u'tf-8), file name, date and data.
    """
    tag = Tag.LITERAL_DATA

    def __init__(self, data, format='b', filename=b'', mtime=0):
        if isinstance(filename, str):
            filename = filename.encode('utf-8')
        if len(filename) > 255:
            raise InvalidValue('literal data file name too long')
        self.format = format
        self.filename = bytes(filename)
        self.mtime = mtime
        self.data = bytes(data)

    @classmethod
    def parse(cls, data):
        if len(data) < 6:
            raise MalformedLength('short literal data packet')
        format = chr(data[0])
        length = data[1]
        offset = 2 + length
        if offset + 4 > len(data):
            raise MalformedLength('literal data header overflow')
        return cls(data[offset + 4:], format=format,
                   filename=data[2:offset], mtime=get_int4(data, offset))

    def body(self):
        return (self.format.encode('ascii')
                + bytes((len(self.filename),)) + self.filename
                + int4_bytes(self.mtime) + self.data)


class CompressedDataPacket(Packet):
    """
    Compressed packets: one algorithm octet, then the compressed packet
    stream.
    """
    tag = Tag.COMPRESSED_DATA

    def __init__(self, algorithm, data):
        self.algorithm = algorithm
        self.data = bytes(data)

    @classmethod
    def parse(cls, data):
        if not data:
            raise MalformedLength('empty compressed data packet')
        return cls(data[0], data[1:])

    @classmethod
    def compress(cls, payload, algorithm=CompressionAlgorithm.ZLIB):
        if algorithm == CompressionAlgorithm.UNCOMPRESSED:
            data = payload
        elif algorithm == CompressionAlgorithm.ZIP:
            compressor = zlib.compressobj(wbits=-15)
            data = compressor.compress(payload) + compressor.flush()
        elif algorithm == CompressionAlgorithm.ZLIB:
            data = zlib.compress(payload)
        elif algorithm == CompressionAlgorithm.BZIP2:
            data = bz2.compress(payload)
        else:
            raise UnsupportedAlgorithm(
                'compression algorithm %d' % (algorithm,))
        return cls(algorithm, data)

    def decompress(self, max_size=MAX_PACKET_SIZE):
        """
        Returns the inner packet stream octets, at most max_size of them.
        """
        if self.algorithm == CompressionAlgorithm.UNCOMPRESSED:
            return self.data
        try:
            if self.algorithm in (CompressionAlgorithm.ZIP,
                                  CompressionAlgorithm.ZLIB):
                wbits = 15
                if self.algorithm == CompressionAlgorithm.ZIP:
                    wbits = -15     # raw deflate
                decompressor = zlib.decompressobj(wbits)
                data = decompressor.decompress(self.data, max_size)
                if decompressor.unconsumed_tail:
                    raise PacketTooLarge('decompressed data too large')
                return data
            if self.algorithm == CompressionAlgorithm.BZIP2:
                decompressor = bz2.BZ2Decompressor()
                data = decompressor.decompress(self.data, max_size)
                if not decompressor.eof and not decompressor.needs_input:
                    raise PacketTooLarge('decompressed data too large')
                return data
        except (zlib.error, OSError, EOFError) as e:
            raise MalformedPacket('decompression failed', str(e))
        raise UnsupportedAlgorithm(
            'compression algorithm %d' % (self.algorithm,))

    def body(self):
        return bytes((self.algorithm,)) + self.data


class TrustPacket(OpaquePacket):
    """
    GnuPG keyring bookkeeping. Implementation specific; kept opaque.
    """
    tag = Tag.TRUST

    def __init__(self, data):
        super(TrustPacket, self).__init__(Tag.TRUST, data)

    @classmethod
    def parse(cls, data):
        return cls(data)


class MarkerPacket(OpaquePacket):
    """
    Always "PGP". Readers must ignore it.
    """
    tag = Tag.MARKER

    def __init__(self, data=b'PGP'):
        super(MarkerPacket, self).__init__(Tag.MARKER, data)

    @classmethod
    def parse(cls, data):
        return cls(data)


TAG_TYPES = {
    Tag.SIGNATURE: SignaturePacket,
    Tag.ONE_PASS_SIGNATURE: OnePassSignaturePacket,
    Tag.SECRET_KEY: SecretKeyPacket,
    Tag.PUBLIC_KEY: PublicKeyPacket,
    Tag.SECRET_SUBKEY: SecretSubkeyPacket,
    Tag.COMPRESSED_DATA: CompressedDataPacket,
    Tag.MARKER: MarkerPacket,
    Tag.LITERAL_DATA: LiteralDataPacket,
    Tag.TRUST: TrustPacket,
    Tag.USER_ID: UserIDPacket,
    Tag.PUBLIC_SUBKEY: PublicSubkeyPacket,
    Tag.USER_ATTRIBUTE: UserAttributePacket,
}


def construct_packet(raw):
    """
    Returns the typed packet for a RawPacket. Raises PacketError or
    UnsupportedError subclasses if the body cannot be decoded.
    """
    PacketType = TAG_TYPES.get(raw.tag)
    # Packet type not handled
    if not PacketType:
        return OpaquePacket(raw.tag, raw.data)
    return PacketType.parse(raw.data)


def decode_packets(raws):
    """
    A generator function returning typed packets for RawPackets. Bodies
    that do not decode, and packets the reader stepped over, become
    CorruptPackets. Framing errors are raised by the RawPacket iterator
    itself.
    """
    for raw in raws:
        if raw.error is not None:
            yield CorruptPacket(raw.tag, raw.data, raw.error)
            continue
        try:
            yield construct_packet(raw)
        except (PacketError, UnsupportedError) as e:
            yield CorruptPacket(raw.tag, raw.data, e)


def parse_packets(data, max_size=MAX_PACKET_SIZE):
    """
    Frame and decode binary data in one go. Fails on the first problem.
    """
    reader = PacketReader(data, max_size=max_size)
    return [construct_packet(raw) for raw in reader.packets()]
