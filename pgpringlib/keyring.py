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

The in-memory keyring.

    store = KeyringStore()
    store.load(open('pubring.gpg', 'rb').read())
    for key in store.lookup_by_userid('walter'):
        print(key.fingerprint_hex)
    data = store.save(KeyType.PUBLIC)

The public and the secret half of one keypair are two entries. Adding a
key of the same type and fingerprint as an existing one merges the two.
"""
import logging
from threading import RLock

from pgpringlib.armor import dearmor, is_armored
from pgpringlib.assembler import KeyAssembler
from pgpringlib.constants import KeyType
from pgpringlib.exceptions import (
    KeyNotFound, PacketError, UnsupportedError, UserError)
from pgpringlib.keyid import normalize_identifier
from pgpringlib.packet import MAX_PACKET_SIZE, PacketReader
from pgpringlib.packets import decode_packets

__all__ = ('KeyringStore', 'load_keys', 'save_keys')

log = logging.getLogger(__name__)


def load_keys(data, strict=False, max_size=MAX_PACKET_SIZE, problems=None):
    """
    Parse (binary or armored) keyring data into a list of Keys.

    A broken key is dropped with a warning. A packet over max_size is
    skipped like a corrupt one. Any other framing error ends the scan: the
    keys completed before it are returned. With strict, all of these raise.

    Pass a list as problems to get (packet, error) pairs of what was
    dropped: the CorruptPacket of a key or subkey, or None for the framing
    error that ended the scan.
    """
    if is_armored(data):
        data = dearmor(data)
    if not data:
        return []

    reader = PacketReader(data, max_size=max_size)
    assembler = KeyAssembler(strict=strict)
    stopped = None
    try:
        for packet in decode_packets(reader.packets(skip_large=not strict)):
            assembler.feed(packet)
    except (PacketError, UnsupportedError) as e:
        if strict:
            raise
        # The key being assembled when this happened may be incomplete.
        log.warning('stopped reading keyring at offset %d: %s',
                    reader.offset, e)
        assembler.primary = None
        stopped = e
    keys = assembler.finish()

    if problems is not None:
        problems.extend((packet, packet.error)
                        for packet in assembler.dropped)
        if stopped is not None:
            problems.append((None, stopped))
    return keys


def save_keys(keys, filter=KeyType.ALL):
    """
    Serialize keys to binary keyring data. The filter is KeyType.ALL,
    KeyType.PUBLIC, KeyType.SECRET or an iterable of identifiers.
    """
    return b''.join(key.to_bytes() for key in _filter_keys(keys, filter))


def _filter_keys(keys, filter):
    if filter == KeyType.ALL or filter is None:
        return list(keys)
    if filter in KeyType.ALL:
        return [key for key in keys if key.key_type == filter]
    if isinstance(filter, (str, bytes)):
        filter = [filter]

    identifiers = list(filter)
    for identifier in identifiers:
        if normalize_identifier(identifier) is None:
            raise UserError('not a key ID or fingerprint', identifier)
    selected = []
    for identifier in identifiers:
        matches = [key for key in keys if key.matches_identifier(identifier)]
        if not matches:
            raise KeyNotFound(identifier)
        for key in matches:
            if key not in selected:
                selected.append(key)
    return selected


class KeyringStore(object):
    """
    An ordered collection of Keys. All access goes through the lock; the
    list itself is never handed out.
    """
    def __init__(self, keys=()):
        self._lock = RLock()
        self._keys = []
        for key in keys:
            self.add(key)

    def add(self, key):
        """
        Add a key; merge it into the existing key of the same type and
        fingerprint if there is one. Returns the stored key.
        """
        with self._lock:
            for i, existing in enumerate(self._keys):
                if (existing.key_type == key.key_type and
                        existing.fingerprint == key.fingerprint):
                    merged = existing.merge(key)
                    self._keys[i] = merged
                    log.debug('merged %r', merged)
                    return merged
            self._keys.append(key)
            return key

    def remove(self, key_or_identifier, key_type=None):
        """
        Remove a key, or all keys matching an identifier (optionally of one
        type only). Returns the removed keys.
        """
        with self._lock:
            if hasattr(key_or_identifier, 'fingerprint'):
                removed = [
                    i for i in self._keys
                    if (i.key_type == key_or_identifier.key_type and
                        i.fingerprint == key_or_identifier.fingerprint)]
            else:
                removed = [
                    i for i in self._keys
                    if i.matches_identifier(key_or_identifier, subkeys=False)
                    and key_type in (None, i.key_type)]
            if not removed:
                raise KeyNotFound(getattr(
                    key_or_identifier, 'key_id_hex', key_or_identifier))
            self._keys = [i for i in self._keys if i not in removed]
            return removed

    def load(self, data, strict=False, max_size=MAX_PACKET_SIZE):
        """
        Add all keys in data. Returns the keys as stored.
        """
        keys = load_keys(data, strict=strict, max_size=max_size)
        with self._lock:
            added = [self.add(key) for key in keys]
        log.info('loaded %d keys', len(added))
        return added

    def save(self, filter=KeyType.ALL):
        with self._lock:
            keys = list(self._keys)
        return save_keys(keys, filter)

    def lookup(self, identifier):
        """
        All keys (public and secret) with a primary or subkey matching the
        key ID or fingerprint. Empty if none match.
        """
        with self._lock:
            return [key for key in self._keys
                    if key.matches_identifier(identifier)]

    def lookup_by_userid(self, substring):
        with self._lock:
            return [key for key in self._keys
                    if key.matches_userid(substring)]

    def lookup_by_type(self, key_type):
        with self._lock:
            if key_type == KeyType.ALL:
                return list(self._keys)
            return [key for key in self._keys if key.key_type == key_type]

    def __len__(self):
        with self._lock:
            return len(self._keys)

    def __iter__(self):
        # Iterate over a snapshot.
        with self._lock:
            return iter(list(self._keys))

    def __contains__(self, key):
        with self._lock:
            return key in self._keys

    def __repr__(self):
        return '<%s: %d keys>' % (self.__class__.__name__, len(self))
