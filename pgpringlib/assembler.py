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

Key assembly: from a flat packet sequence to Keys.
Reference: http://tools.ietf.org/html/rfc4880#section-11.1

A signature belongs to whatever was opened last: the primary key, a user
ID (or attribute) or a subkey. A new primary key closes the previous key.

    EXPECT_PRIMARY --primary--> IN_USERIDS --subkey--> IN_SUBKEYS

    A corrupt primary key packet moves to DISCARDING instead; everything
    up to the next primary key is dropped.
"""
import logging

from pgpringlib.exceptions import KeyringError, OrphanSignature
from pgpringlib.key import Key, Subkey, UserIDBinding
from pgpringlib.packet import Tag
from pgpringlib.packets import CorruptPacket

__all__ = ('KeyAssembler', 'assemble')

log = logging.getLogger(__name__)


class KeyAssembler(object):
    EXPECT_PRIMARY = 'expect-primary'
    IN_USERIDS = 'in-userids'
    IN_SUBKEYS = 'in-subkeys'
    DISCARDING = 'discarding'

    # Keyring bookkeeping we drop without a word.
    SILENT_TAGS = (Tag.TRUST, Tag.MARKER)

    def __init__(self, strict=False):
        self.strict = strict
        self.state = self.EXPECT_PRIMARY
        self.keys = []
        # Corrupt primary key and subkey packets that were skipped.
        self.dropped = []
        self._reset()

    def _reset(self):
        self.primary = None
        self.direct_signatures = []
        self.userids = []       # [packet, [signatures]] pairs
        self.subkeys = []       # [packet, [signatures]] pairs
        # The list signatures go to. None drops them (after a corrupt
        # user ID or subkey).
        self.target = None

    def _problem(self, exception, message, *args):
        if self.strict:
            raise exception
        log.warning(message, *args)

    def feed(self, packet):
        """
        Process one decoded packet. Returns the Key that got completed by
        it (when a new primary key starts), or None.
        """
        tag = packet.tag
        completed = None

        if tag in Tag.PRIMARY_KEYS:
            completed = self._finish_key()
            if isinstance(packet, CorruptPacket):
                self.dropped.append(packet)
                self._problem(
                    packet.error, 'dropping key with corrupt primary key '
                    'packet: %s', packet.error)
                self.state = self.DISCARDING
                return completed
            self.primary = packet
            self.target = self.direct_signatures
            self.state = self.IN_USERIDS
            return completed

        if self.state == self.DISCARDING:
            log.debug('discarding %r of a corrupt key', packet)
            return None

        if tag == Tag.SIGNATURE:
            if self.state == self.EXPECT_PRIMARY:
                raise OrphanSignature('signature before any key packet')
            if isinstance(packet, CorruptPacket):
                self._problem(packet.error,
                              'skipping corrupt signature packet: %s',
                              packet.error)
            elif self.target is None:
                log.debug('dropping %r of a skipped packet', packet)
            else:
                self.target.append(packet)
            return None

        if tag in Tag.USERS or tag in Tag.SUBKEYS:
            if self.state == self.EXPECT_PRIMARY:
                self._problem(
                    KeyringError('%s before any key packet' % (packet.name,)),
                    'skipping %r before any key packet', packet)
                return None
            if isinstance(packet, CorruptPacket):
                if tag in Tag.SUBKEYS:
                    self.dropped.append(packet)
                self._problem(packet.error, 'skipping corrupt %s: %s',
                              packet.name, packet.error)
                self.target = None
                return None
            if tag in Tag.USERS:
                pair = [packet, []]
                self.userids.append(pair)
            else:
                pair = [packet, []]
                self.subkeys.append(pair)
                self.state = self.IN_SUBKEYS
            self.target = pair[1]
            return None

        if tag in self.SILENT_TAGS:
            log.debug('skipping %r', packet)
            return None

        self._problem(
            KeyringError('unexpected %s in keyring' % (packet.name,)),
            'skipping unexpected %r in keyring', packet)
        return None

    def _finish_key(self):
        if self.primary is None:
            self._reset()
            return None
        key = Key(
            self.primary, self.direct_signatures,
            [UserIDBinding(packet, sigs) for packet, sigs in self.userids],
            [Subkey(packet, sigs) for packet, sigs in self.subkeys])
        self._reset()
        self.keys.append(key)
        log.debug('assembled %r', key)
        return key

    def finish(self):
        """
        Close the last key. Returns all keys assembled.
        """
        self._finish_key()
        self.state = self.EXPECT_PRIMARY
        return self.keys


def assemble(packets, strict=False):
    """
    Turn decoded packets into a list of Keys.
    """
    assembler = KeyAssembler(strict=strict)
    for packet in packets:
        assembler.feed(packet)
    return assembler.finish()
