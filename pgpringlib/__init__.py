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
"""

# The facade (openpgp) and the keyring are what most callers need. The
# packet level modules are importable on their own.
__all__ = ('VERSION', 'VERSION_STRING', 'armor', 'exceptions', 'keyring',
           'openpgp')
# http://docs.python.org/2/tutorial/modules.html#importing-from-a-package

VERSION = (1, 0, 0)
VERSION_STRING = '1.0.0'
