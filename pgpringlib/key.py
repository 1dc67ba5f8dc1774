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

The assembled key: a primary key packet with everything that belongs to it.
Keys are not changed after assembly; merge(), public_key() and unlock()
return new ones.
"""
from pgpringlib.constants import KeyFlags, KeyType, PubKeyAlgorithm
from pgpringlib.exceptions import KeyTypeMismatch
from pgpringlib.keyid import format_key_id, normalize_identifier
from pgpringlib.packet import Tag

__all__ = ('Key', 'Subkey', 'UserIDBinding')


def _merge_packets(first, second):
    # Keep order; drop octet-identical duplicates.
    merged = list(first)
    seen = set(merged)
    for packet in second:
        if packet not in seen:
            merged.append(packet)
            seen.add(packet)
    return tuple(merged)


def _matches_key_packet(packet, identifier):
    """
    Compare a normalized hex identifier to a key packet: full fingerprint,
    long (16) or short (8) key ID.
    """
    if len(identifier) in (32, 40):
        return format_key_id(packet.fingerprint) == identifier
    return format_key_id(packet.key_id).endswith(identifier)


def _can_sign(packet, signatures):
    if packet.algorithm not in PubKeyAlgorithm.CAN_SIGN:
        return False
    if packet.is_secret and packet.is_dummy:
        return False
    flagged = [sig for sig in signatures if sig.key_flags is not None]
    if flagged:
        # The most recent self-signature counts; on a tie the later one.
        newest = max(reversed(flagged),
                     key=lambda sig: sig.creation_time or 0)
        return bool(newest.key_flags & KeyFlags.SIGN)
    return True


class UserIDBinding(object):
    """
    A user ID (or user attribute) packet and the certifications on it.
    """
    def __init__(self, packet, signatures=()):
        self.packet = packet
        self.signatures = tuple(signatures)

    @property
    def userid(self):
        return self.packet.userid

    @property
    def is_attribute(self):
        return self.packet.tag == Tag.USER_ATTRIBUTE

    def packets(self):
        return (self.packet,) + self.signatures

    def __repr__(self):
        return '<%s: %r, %d signatures>' % (
            self.__class__.__name__, self.userid, len(self.signatures))


class Subkey(object):
    """
    A subkey packet and its binding (and revocation) signatures.
    """
    def __init__(self, packet, signatures=()):
        self.packet = packet
        self.signatures = tuple(signatures)

    @property
    def key_id(self):
        return self.packet.key_id

    @property
    def key_id_hex(self):
        return format_key_id(self.packet.key_id)

    @property
    def fingerprint(self):
        return self.packet.fingerprint

    @property
    def can_sign(self):
        return _can_sign(self.packet, self.signatures)

    def packets(self):
        return (self.packet,) + self.signatures

    def __repr__(self):
        return '<%s: 0x%s, %d signatures>' % (
            self.__class__.__name__, self.key_id_hex, len(self.signatures))


class Key(object):
    """
    One logical key: primary packet, direct key signatures, user ID
    bindings and subkeys, in the order they were read.
    """
    def __init__(self, primary, direct_signatures=(), userids=(),
                 subkeys=()):
        self.primary = primary
        self.direct_signatures = tuple(direct_signatures)
        self.userids = tuple(userids)
        self.subkeys = tuple(subkeys)

    @property
    def key_type(self):
        if self.primary.is_secret:
            return KeyType.SECRET
        return KeyType.PUBLIC

    @property
    def is_secret(self):
        return self.primary.is_secret

    @property
    def key_id(self):
        return self.primary.key_id

    @property
    def key_id_hex(self):
        return format_key_id(self.primary.key_id)

    @property
    def fingerprint(self):
        return self.primary.fingerprint

    @property
    def fingerprint_hex(self):
        return format_key_id(self.primary.fingerprint)

    @property
    def created(self):
        return self.primary.created

    @property
    def creation_time(self):
        return self.primary.creation_time

    @property
    def uids(self):
        """
        The user ID strings.
        """
        return [binding.userid for binding in self.userids]

    def packets(self):
        """
        All packets in keyring order: the inverse of what the assembler
        does.
        """
        packets = [self.primary]
        packets.extend(self.direct_signatures)
        for binding in self.userids:
            packets.extend(binding.packets())
        for subkey in self.subkeys:
            packets.extend(subkey.packets())
        return packets

    def to_bytes(self):
        return b''.join(packet.to_bytes() for packet in self.packets())

    def public_key(self):
        """
        The public half. Returns self if this already is a public key.
        """
        if not self.is_secret:
            return self
        return Key(
            self.primary.public_packet(), self.direct_signatures,
            self.userids,
            [Subkey(subkey.packet.public_packet(), subkey.signatures)
             for subkey in self.subkeys])

    def merge(self, other):
        """
        Combine two copies of the same key. The result is secret if either
        one is; signatures, user IDs and subkeys are united.
        """
        if self.fingerprint != other.fingerprint:
            raise KeyTypeMismatch('cannot merge different keys',
                                  self.key_id_hex, other.key_id_hex)

        primary = self.primary
        if other.is_secret and not self.is_secret:
            primary = other.primary

        userids = []
        for binding in self.userids + other.userids:
            for i, existing in enumerate(userids):
                if existing.packet == binding.packet:
                    userids[i] = UserIDBinding(
                        existing.packet, _merge_packets(
                            existing.signatures, binding.signatures))
                    break
            else:
                userids.append(binding)

        subkeys = []
        for subkey in self.subkeys + other.subkeys:
            for i, existing in enumerate(subkeys):
                if existing.fingerprint == subkey.fingerprint:
                    packet = existing.packet
                    if subkey.packet.is_secret and not packet.is_secret:
                        packet = subkey.packet
                    subkeys[i] = Subkey(packet, _merge_packets(
                        existing.signatures, subkey.signatures))
                    break
            else:
                subkeys.append(subkey)

        return Key(
            primary, _merge_packets(self.direct_signatures,
                                    other.direct_signatures),
            userids, subkeys)

    def unlock(self, passphrase):
        """
        Return a copy with the primary key and subkeys decrypted. Parts
        that have no secret (gnu-dummy) are left alone.
        """
        if not self.is_secret:
            raise KeyTypeMismatch('cannot unlock a public key',
                                  self.key_id_hex)

        primary = self.primary
        if not primary.is_dummy:
            primary = primary.unlock(passphrase)
        subkeys = []
        for subkey in self.subkeys:
            packet = subkey.packet
            if packet.is_secret and not packet.is_dummy:
                packet = packet.unlock(passphrase)
            subkeys.append(Subkey(packet, subkey.signatures))
        return Key(primary, self.direct_signatures, self.userids, subkeys)

    @property
    def is_locked(self):
        if not self.is_secret:
            return False
        return any(packet.is_secret and packet.is_locked
                   and not packet.is_dummy
                   for packet in self.key_packets())

    def key_packets(self):
        return [self.primary] + [subkey.packet for subkey in self.subkeys]

    def find_key_packet(self, identifier):
        """
        The primary or subkey packet matching a key ID or fingerprint (hex
        or raw octets), or None.
        """
        value = normalize_identifier(identifier)
        if value is None:
            return None
        for packet in self.key_packets():
            if _matches_key_packet(packet, value):
                return packet
        return None

    def find_subkey(self, identifier):
        value = normalize_identifier(identifier)
        if value is None:
            return None
        for subkey in self.subkeys:
            if _matches_key_packet(subkey.packet, value):
                return subkey
        return None

    def matches_identifier(self, identifier, subkeys=True):
        """
        True if the identifier is the key ID or fingerprint of the primary
        key, or of one of the subkeys.
        """
        value = normalize_identifier(identifier)
        if value is None:
            return False
        if _matches_key_packet(self.primary, value):
            return True
        if subkeys:
            return any(_matches_key_packet(subkey.packet, value)
                       for subkey in self.subkeys)
        return False

    def matches_userid(self, substring):
        """
        Case insensitive substring match on the user IDs.
        """
        needle = substring.lower()
        return any(needle in uid.lower() for uid in self.uids)

    def signing_packet(self):
        """
        The key packet that makes signatures: the primary if it is able
        to, otherwise the first subkey that can. None if there is none.
        """
        self_sigs = [
            sig for binding in self.userids for sig in binding.signatures
            if sig.issuer == self.key_id]
        if _can_sign(self.primary, self_sigs):
            return self.primary
        for subkey in self.subkeys:
            if subkey.can_sign:
                return subkey.packet
        return None

    def __eq__(self, other):
        if not isinstance(other, Key):
            return NotImplemented
        return self.packets() == other.packets()

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        return hash((self.key_type, self.fingerprint))

    def __repr__(self):
        uid = self.uids[0] if self.uids else None
        return '<%s: %s 0x%s, %r, %d subkeys>' % (
            self.__class__.__name__, self.key_type, self.key_id_hex, uid,
            len(self.subkeys))
