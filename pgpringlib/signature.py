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

Making and checking signatures.
Reference: http://tools.ietf.org/html/rfc4880#section-5.2.4

What gets hashed depends on the signature type:

    0x00        the data
    0x01        the data, with CRLF line endings
    0x02, 0x40  nothing
    0x10-0x13   primary key, user ID (or attribute)
    0x30        primary key, user ID (or attribute)
    0x18, 0x19  primary key, subkey
    0x28        primary key, subkey
    0x1f, 0x20  primary key

followed by the signature's own hashed fields and the trailer. Key packets
are hashed as 0x99, two octet length, public body. For v4 signatures, user
IDs get 0xb4 (attributes 0xd1) and a four octet length.

A signature that does not match is not an error: verify() returns False.
"""
import logging
import time

from pgpringlib import primitives
from pgpringlib.bytes import int2_bytes, int4_bytes
from pgpringlib.constants import (
    HashAlgorithm, KeyType, SignatureType, SubpacketType)
from pgpringlib.exceptions import (
    CryptLockedKey, KeyNotFound, KeyTypeMismatch, MalformedPacket,
    UnsupportedError)
from pgpringlib.keyid import format_key_id, normalize_identifier
from pgpringlib.packet import Tag
from pgpringlib.packets import (
    CompressedDataPacket, LiteralDataPacket, OnePassSignaturePacket,
    SignaturePacket, Subpacket, parse_packets)

__all__ = ('DEFAULT_HASH', 'SignatureEngine', 'canonical_text',
           'hash_signature', 'resolve_key', 'signed_data')

log = logging.getLogger(__name__)

DEFAULT_HASH = HashAlgorithm.SHA256


def canonical_text(data):
    """
    Text signatures are made over CRLF line endings.
    """
    return data.replace(b'\r\n', b'\n').replace(b'\n', b'\r\n')


def key_prefix(packet):
    body = packet.public_body()
    return b'\x99' + int2_bytes(len(body)) + body


def user_prefix(packet, version):
    data = packet.body()
    if version != 4:
        return data
    if packet.tag == Tag.USER_ATTRIBUTE:
        return b'\xd1' + int4_bytes(len(data)) + data
    return b'\xb4' + int4_bytes(len(data)) + data


def signed_data(sig_type, version=4, data=None, primary=None, userid=None,
                subkey=None):
    """
    The octets a signature of sig_type covers, before its trailer.
    """
    def need(value, what):
        if value is None:
            raise UnsupportedError(
                'signature type 0x%02x needs %s' % (sig_type, what))
        return value

    if sig_type == SignatureType.BINARY:
        return bytes(need(data, 'data'))
    if sig_type == SignatureType.TEXT:
        return canonical_text(bytes(need(data, 'data')))
    if sig_type in (SignatureType.STANDALONE, SignatureType.TIMESTAMP):
        return b''
    if sig_type in SignatureType.CERTIFICATIONS:
        return (key_prefix(need(primary, 'a primary key')) +
                user_prefix(need(userid, 'a user ID'), version))
    if sig_type in SignatureType.SUBKEY_SIGNATURES:
        return (key_prefix(need(primary, 'a primary key')) +
                key_prefix(need(subkey, 'a subkey')))
    if sig_type in SignatureType.KEY_SIGNATURES:
        return key_prefix(need(primary, 'a primary key'))
    raise UnsupportedError('signature type 0x%02x' % (sig_type,))


def hash_signature(signature, **targets):
    """
    Returns the (pycryptodome) hash object over the signed data and the
    trailer of signature.
    """
    hash_ = primitives.new_hash(signature.hash_algorithm)
    hash_.update(signed_data(signature.sig_type, signature.version,
                             **targets))
    hash_.update(signature.hash_trailer())
    return hash_


def resolve_key(keys, identifier):
    """
    Pick one key from keys for identifier. An exact key ID or fingerprint
    match wins. Otherwise the most recently created key with a matching
    user ID; on a tie the first one in keys.
    """
    keys = list(keys)
    if normalize_identifier(identifier) is not None:
        for key in keys:
            if key.matches_identifier(identifier):
                return key

    best = None
    for key in keys:
        if key.matches_userid(identifier):
            if best is None or key.creation_time > best.creation_time:
                best = key
    if best is None:
        raise KeyNotFound('no key for %r' % (identifier,))
    return best


class SignatureEngine(object):
    """
    Signature creation and verification, for key signatures and for
    messages (detached or inline).
    """
    def __init__(self, hash_algorithm=DEFAULT_HASH):
        self.hash_algorithm = hash_algorithm

    def sign(self, packet, sig_type, created=None, hash_algorithm=None,
             hashed_subpackets=(), **targets):
        """
        Make a v4 signature with the unlocked secret key packet. targets
        are data, primary, userid and subkey, as signed_data() needs them.
        """
        if not packet.is_secret:
            raise KeyTypeMismatch('cannot sign with a public key',
                                  format_key_id(packet.key_id))
        if packet.is_locked:
            raise CryptLockedKey(format_key_id(packet.key_id))
        if created is None:
            created = int(time.time())
        if hash_algorithm is None:
            hash_algorithm = self.hash_algorithm

        hashed = [Subpacket(SubpacketType.CREATION_TIME, int4_bytes(created))]
        if packet.version == 4:
            hashed.append(Subpacket(SubpacketType.ISSUER_FINGERPRINT,
                                    b'\x04' + packet.fingerprint))
        hashed.extend(hashed_subpackets)
        unhashed = [Subpacket(SubpacketType.ISSUER, packet.key_id)]

        signature = SignaturePacket(
            4, sig_type, packet.algorithm, hash_algorithm,
            hashed_subpackets=hashed, unhashed_subpackets=unhashed)
        hash_ = hash_signature(signature, **targets)
        signature.hash2 = hash_.digest()[:2]
        signature.mpis = primitives.sign(hash_, packet)
        log.debug('made %r', signature)
        return signature

    def verify(self, signature, packet, **targets):
        """
        Check signature with the key packet. Returns a bool.
        """
        if signature.algorithm != packet.algorithm:
            log.debug('%r: algorithm differs from key %r', signature, packet)
            return False
        hash_ = hash_signature(signature, **targets)
        # Quick check: the first two octets of the hash are stored in the
        # signature packet.
        if hash_.digest()[:2] != signature.hash2:
            log.debug('%r: hash quick check failed', signature)
            return False
        return primitives.verify(hash_, signature.mpis, packet)

    def sign_message(self, data, key, detached=False, text=False,
                     filename=b'', created=None):
        """
        Sign data with the (unlocked) secret key. Returns the detached
        signature packet octets, or the one-pass signature, literal data
        and signature packets for an inline signed message.
        """
        if key.key_type != KeyType.SECRET:
            raise KeyTypeMismatch('signing needs a secret key',
                                  key.key_id_hex)
        packet = key.signing_packet()
        if packet is None:
            raise KeyTypeMismatch('key has no signing capable key packet',
                                  key.key_id_hex)
        if created is None:
            created = int(time.time())

        sig_type = SignatureType.BINARY
        if text:
            sig_type = SignatureType.TEXT
        signature = self.sign(packet, sig_type, created=created, data=data)
        if detached:
            return signature.to_bytes()

        one_pass = OnePassSignaturePacket(
            sig_type, signature.hash_algorithm, signature.algorithm,
            packet.key_id)
        literal = LiteralDataPacket(
            data, format=('t' if text else 'b'), filename=filename,
            mtime=created)
        return one_pass.to_bytes() + literal.to_bytes() + signature.to_bytes()

    def split_message(self, message, signature=None):
        """
        Returns (data, [signature packets]) for a detached signature or an
        inline signed (possibly compressed) message.
        """
        if signature is not None:
            packets = parse_packets(signature)
            signatures = [i for i in packets if isinstance(
                i, SignaturePacket)]
            if not signatures:
                raise MalformedPacket('no signature packet found')
            return bytes(message), signatures

        packets = parse_packets(message)
        if len(packets) == 1 and isinstance(packets[0],
                                            CompressedDataPacket):
            packets = parse_packets(packets[0].decompress())

        literal = None
        signatures = []
        for packet in packets:
            if isinstance(packet, LiteralDataPacket):
                if literal is not None:
                    raise MalformedPacket('more than one literal data packet')
                literal = packet
            elif isinstance(packet, SignaturePacket):
                signatures.append(packet)
            elif not isinstance(packet, OnePassSignaturePacket):
                log.debug('ignoring %r in signed message', packet)
        if literal is None:
            raise MalformedPacket('no literal data packet found')
        if not signatures:
            raise MalformedPacket('no signature packet found')
        return literal.data, signatures

    def verify_message(self, message, signature=None, key=None,
                       resolver=None):
        """
        Verify a detached signature over message, or an inline signed
        message. Verify against key if given; otherwise resolver is called
        with the issuer key ID octets and returns a Key or None.

        True if any document signature verifies. Raises KeyNotFound if no
        key could be found for any of the signatures.
        """
        data, signatures = self.split_message(message, signature)

        found = key is not None
        for sig in signatures:
            if sig.sig_type not in SignatureType.DOCUMENTS:
                log.debug('skipping non-document %r', sig)
                continue

            candidate = key
            if candidate is None:
                if resolver is None or sig.issuer is None:
                    continue
                candidate = resolver(sig.issuer)
                if candidate is None:
                    log.info('no key for issuer %s', sig.issuer_hex)
                    continue
            found = True

            if sig.issuer is not None:
                packets = [candidate.find_key_packet(sig.issuer)]
                if packets[0] is None:
                    log.debug('%r not made by %r', sig, candidate)
                    continue
            else:
                packets = candidate.key_packets()

            for packet in packets:
                if self.verify(sig, packet, data=data):
                    return True

        if not found:
            raise KeyNotFound('no key for any of the signatures', ', '.join(
                sig.issuer_hex or '(unknown)' for sig in signatures))
        return False
