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

The front door: load and save keyrings, find keys, sign and verify.

    pgp = OpenPGP()
    pgp.load_keys_from_keyring('/home/walter/.gnupg/pubring.gpg')
    pgp.load_keys_from_keyring('secring.gpg')
    signature = pgp.sign_data(b'data', userid='walter', detached=True,
                              passphrase='secret')
    assert pgp.verify_data(b'data', signature)

Failure to verify is False. Everything that prevents verification from
being attempted (no key, garbage input, unreadable file) raises.
"""
import logging
import os

from pgpringlib.armor import dearmor, is_armored
from pgpringlib.bytes import read_fp
from pgpringlib.constants import KeyType
from pgpringlib.exceptions import (
    CryptLockedKey, IOFailure, KeyNotFound, KeyTypeMismatch, UserError)
from pgpringlib.keyid import (
    fingerprint_v4, format_key_id, normalize_identifier)
from pgpringlib.keyring import KeyringStore, load_keys, save_keys
from pgpringlib.packet import MAX_PACKET_SIZE, Tag
from pgpringlib.signature import SignatureEngine, resolve_key

__all__ = ('OpenPGP',)

log = logging.getLogger(__name__)

# Secret key bodies carry more than the public part we can hash.
PUBLIC_KEY_TAGS = (Tag.PUBLIC_KEY, Tag.PUBLIC_SUBKEY)


def read_file(path, max_size=MAX_PACKET_SIZE):
    try:
        with open(path, 'rb') as file:
            return read_fp(file, max_size=max_size)
    except OSError as e:
        raise IOFailure('cannot read %s' % (path,), e.strerror)


def write_file(path, data):
    """
    Write data to path through a temporary file, so a failed write does
    not leave half a keyring behind.
    """
    temp = path + '.tmp'
    try:
        with open(temp, 'wb') as file:
            file.write(data)
        os.replace(temp, path)
    except OSError as e:
        try:
            os.unlink(temp)
        except OSError:
            pass
        raise IOFailure('cannot write %s' % (path,), e.strerror)


def _load_problem(problems, identifier):
    """
    Pick the error to raise for identifier from the (packet, error) pairs
    of load_keys: the corrupt key packet with that fingerprint, else the
    first dropped primary key or framing error. None if there is neither.
    """
    value = normalize_identifier(identifier)
    if value is not None:
        for packet, error in problems:
            if packet is None or packet.tag not in PUBLIC_KEY_TAGS:
                continue
            body = packet.body()
            if body[:1] != b'\x04':
                continue
            fpr = format_key_id(fingerprint_v4(body))
            if len(value) in (32, 40):
                if fpr == value:
                    return error
            elif fpr.endswith(value):
                return error
    for packet, error in problems:
        if packet is None or packet.tag in Tag.PRIMARY_KEYS:
            return error
    return None


class OpenPGP(object):
    """
    A keyring store with the signature engine on top. The passphrase
    callback (if any) is called with the key when a locked key is needed
    and no passphrase was passed.
    """
    def __init__(self, store=None, engine=None, passphrase_callback=None,
                 max_size=MAX_PACKET_SIZE):
        if store is None:
            store = KeyringStore()
        if engine is None:
            engine = SignatureEngine()
        self.store = store
        self.engine = engine
        self.passphrase_callback = passphrase_callback
        self.max_size = max_size

    @property
    def keys(self):
        return list(self.store)

    ###########################################################################
    # LOADING AND SAVING
    ###########################################################################

    def load_keys_from_keyring(self, path):
        """
        Load all keys from the (binary or armored) keyring file. Returns the
        keys that were added.
        """
        data = read_file(path, max_size=self.max_size)
        keys = self.store.load(data, max_size=self.max_size)
        log.info('loaded %d keys from %s', len(keys), path)
        return keys

    def load_key(self, identifier, path):
        """
        Load only the key(s) matching identifier (key ID or fingerprint)
        from the keyring file. Raises KeyNotFound if there are none.

        Other keys in the file may be broken. But if nothing matches and
        a key was dropped while reading, its error is raised instead:
        the key asked for may well be the broken one.
        """
        data = read_file(path, max_size=self.max_size)
        problems = []
        keys = [key for key in load_keys(data, max_size=self.max_size,
                                         problems=problems)
                if key.matches_identifier(identifier)]
        if not keys:
            error = _load_problem(problems, identifier)
            if error is not None:
                raise error
            raise KeyNotFound(identifier, path)
        return [self.store.add(key) for key in keys]

    def save_keys_of_type(self, key_type, path):
        if key_type not in KeyType.ALL and key_type != KeyType.ALL:
            raise UserError('unknown key type', key_type)
        write_file(path, self.store.save(key_type))

    def save_keys(self, keys, path):
        write_file(path, save_keys(keys))

    ###########################################################################
    # QUERIES
    ###########################################################################

    def get_keys_for_userid(self, userid):
        return self.store.lookup_by_userid(userid)

    def get_key_for_identifier(self, identifier):
        """
        The first key matching the key ID or fingerprint, or None.
        """
        keys = self.store.lookup(identifier)
        if keys:
            return keys[0]
        return None

    def get_keys_of_type(self, key_type):
        return self.store.lookup_by_type(key_type)

    ###########################################################################
    # SIGNING AND VERIFYING
    ###########################################################################

    def _unlocked(self, key, passphrase):
        packet = key.signing_packet()
        if packet is None or not packet.is_locked:
            return key
        if passphrase is None and self.passphrase_callback:
            passphrase = self.passphrase_callback(key)
        if passphrase is None:
            raise CryptLockedKey(key.key_id_hex)
        return key.unlock(passphrase)

    def sign_data(self, data, secret_key=None, userid=None, detached=False,
                  passphrase=None):
        """
        Sign data with secret_key, or with the secret key found for userid
        (a user ID substring, key ID or fingerprint). Returns the binary
        signature (detached) or signed message.
        """
        if secret_key is None:
            if userid is None:
                raise UserError('need a secret key or a user ID to sign')
            secret_key = resolve_key(
                self.store.lookup_by_type(KeyType.SECRET), userid)
        if secret_key.key_type != KeyType.SECRET:
            raise KeyTypeMismatch('signing needs a secret key',
                                  secret_key.key_id_hex)
        key = self._unlocked(secret_key, passphrase)
        return self.engine.sign_message(data, key, detached=detached)

    def _find_issuer(self, issuer):
        # Public keys first; a secret key has a public half too.
        keys = self.store.lookup(issuer)
        for key in keys:
            if key.key_type == KeyType.PUBLIC:
                return key
        if keys:
            return keys[0]
        return None

    def verify_data(self, data, signature=None, public_key=None):
        """
        Verify a signed message (signature is None) or data against a
        detached signature. Both may be armored, except the data of a
        detached signature, which is taken as is.
        """
        if signature is not None:
            if is_armored(signature):
                signature = dearmor(signature)
        elif is_armored(data):
            data = dearmor(data)
        return self.engine.verify_message(
            data, signature, key=public_key, resolver=self._find_issuer)
