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

A bad signature is not an exception: verification returns False. These
exceptions are for everything that prevents an operation from being
attempted at all.
"""


class PgpringException(Exception):
    class_ = 'general error'
    description = 'undefined'

    def __init__(self, *args, **kwargs):
        super(Exception, self).__init__(*args, **kwargs)
        if self.args or not self.description:
            self.args = tuple((self.class_,) + self.args)
        else:
            self.args = (self.class_, self.description)


class PacketError(PgpringException):
    class_ = 'packet error'
    description = 'undefined'


class MalformedPacket(PacketError):
    description = 'bad packet framing or length'


class TruncatedPacket(MalformedPacket):
    description = 'declared length exceeds the remaining data'


class MalformedLength(MalformedPacket):
    description = 'field length exceeds the remaining data'


class PacketTooLarge(MalformedPacket):
    description = 'packet body exceeds the maximum packet size'
    # The skipped RawPacket, when the whole packet is in the data.
    packet = None


class MalformedArmor(MalformedPacket):
    description = 'bad ascii armor or checksum'


class InvalidValue(PacketError):
    description = 'value cannot be represented'


class UnsupportedError(PgpringException):
    class_ = 'unsupported'
    description = 'undefined'


class UnsupportedVersion(UnsupportedError):
    description = 'unknown or unimplemented packet version'


class UnsupportedAlgorithm(UnsupportedError):
    description = 'unknown or unimplemented algorithm'


class KeyringError(PgpringException):
    class_ = 'keyring error'
    description = 'undefined'


class OrphanSignature(KeyringError):
    description = 'signature packet without a preceding key'


class KeyNotFound(KeyringError):
    description = 'lookup failed (no matching key)'


class KeyTypeMismatch(KeyringError):
    description = 'key is of the wrong type for this operation'


class CryptError(PgpringException):
    class_ = 'crypto error'
    description = 'undefined'


class CryptBadPassword(CryptError):
    description = 'insufficient typing skills detected'


class CryptLockedKey(CryptError):
    description = 'secret key material is locked (passphrase needed)'


class CryptBadKey(CryptError):
    description = 'key material is inconsistent or unusable'


class IOFailure(PgpringException):
    class_ = 'i/o error'
    description = 'file access failed'


class UserError(PgpringException):
    class_ = 'user error'
    description = 'undefined'
