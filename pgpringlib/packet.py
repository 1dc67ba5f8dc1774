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

Packet framing: the tag and length header around an opaque body.
Reference: http://tools.ietf.org/html/rfc4880#section-4.2

The framer handles one packet at a time. What the packets mean, and which
packet belongs to which, is decided elsewhere (packets, assembler).
"""
from pgpringlib.bytes import get_int2, get_int4, int4_bytes
from pgpringlib.exceptions import (
    MalformedPacket, PacketTooLarge, TruncatedPacket)

__all__ = ('MAX_PACKET_SIZE', 'PacketReader', 'RawPacket', 'Tag',
           'iter_packets', 'read_packet', 'write_packet')


# Refuse bodies larger than this. A corrupt length field could otherwise
# make us allocate gigabytes.
MAX_PACKET_SIZE = 64 * 1024 * 1024


class Tag(object):
    """
    Packet tags. Only tags in TAG_NAMES are known by name; everything else
    is kept around as an opaque packet.
    """
    RESERVED = 0
    PUBKEY_ENC_SESSION_KEY = 1
    SIGNATURE = 2
    SYMKEY_ENC_SESSION_KEY = 3
    ONE_PASS_SIGNATURE = 4
    SECRET_KEY = 5
    PUBLIC_KEY = 6
    SECRET_SUBKEY = 7
    COMPRESSED_DATA = 8
    SYMMETRIC_DATA = 9
    MARKER = 10
    LITERAL_DATA = 11
    TRUST = 12
    USER_ID = 13
    PUBLIC_SUBKEY = 14
    USER_ATTRIBUTE = 17
    SYMMETRIC_INTEGRITY_DATA = 18
    MODIFICATION_DETECTION_CODE = 19

    PRIMARY_KEYS = (SECRET_KEY, PUBLIC_KEY)
    SUBKEYS = (SECRET_SUBKEY, PUBLIC_SUBKEY)
    USERS = (USER_ID, USER_ATTRIBUTE)


TAG_NAMES = {
    0: 'Reserved',
    1: 'Public-Key Encrypted Session Key Packet',
    2: 'Signature Packet',
    3: 'Symmetric-Key Encrypted Session Key Packet',
    4: 'One-Pass Signature Packet',
    5: 'Secret-Key Packet',
    6: 'Public-Key Packet',
    7: 'Secret-Subkey Packet',
    8: 'Compressed Data Packet',
    9: 'Symmetrically Encrypted Data Packet',
    10: 'Marker Packet',
    11: 'Literal Data Packet',
    12: 'Trust Packet',
    13: 'User ID Packet',
    14: 'Public-Subkey Packet',
    17: 'User Attribute Packet',
    18: 'Sym. Encrypted and Integrity Protected Data Packet',
    19: 'Modification Detection Code Packet',
}


def tag_name(tag):
    if 60 <= tag <= 63:
        return 'Private or Experimental Values'
    return TAG_NAMES.get(tag, 'Unknown')


class RawPacket(object):
    """
    A framed packet: tag, body and some header facts. The body of a partial
    length packet is already reassembled.
    """
    __slots__ = ('tag', 'data', 'new', 'offset', 'length', 'error')

    def __init__(self, tag, data, new=True, offset=0, length=None,
                 error=None):
        self.tag = tag
        self.data = bytes(data)
        self.new = new
        self.offset = offset      # where the header started
        self.length = length      # header + body bytes consumed
        # Set for a packet that was stepped over; the body is left empty.
        self.error = error

    @property
    def name(self):
        return tag_name(self.tag)

    def __repr__(self):
        new = 'old'
        if self.new:
            new = 'new'
        return '<%s: %s (%d), %s, length %d>' % (
            self.__class__.__name__, self.name, self.tag, new,
            len(self.data))


def new_tag_length(data, start):
    """
    Takes a bytearray of data as input, as well as an offset of where to
    look. Returns a derived (offset, length, partial) tuple.
    Reference: http://tools.ietf.org/html/rfc4880#section-4.2.2

    Signature subpackets use the same length encoding, minus the partial
    lengths.
    """
    if start >= len(data):
        raise TruncatedPacket('missing length octet at %d' % (start,))
    first = data[start]
    partial = False

    # one-octet
    if first < 192:
        offset = 1
        length = first

    # two-octet
    elif first < 224:
        if start + 2 > len(data):
            raise TruncatedPacket('missing second length octet')
        offset = 2
        length = ((first - 192) << 8) + data[start + 1] + 192

    # five-octet
    elif first == 255:
        if start + 5 > len(data):
            raise TruncatedPacket('missing four-octet length')
        offset = 5
        length = get_int4(data, start + 1)

    # Partial Body Length header, one octet long
    else:
        offset = 1
        # partial length, 224 <= l < 255
        length = 1 << (first & 0x1f)
        partial = True

    return (offset, length, partial)


def old_tag_length(data, start):
    """
    Takes a bytearray of data as input, as well as an offset of where to
    look (the tag octet). Returns a derived (offset, length) tuple, where
    offset counts the length octets only.
    """
    temp_len = data[start] & 0x03

    if temp_len == 0:
        if start + 2 > len(data):
            raise TruncatedPacket('missing length octet at %d' % (start,))
        offset = 1
        length = data[start + 1]
    elif temp_len == 1:
        offset = 2
        length = get_int2(data, start + 1)
    elif temp_len == 2:
        offset = 4
        length = get_int4(data, start + 1)
    else:
        # Indeterminate length: the packet runs until the end of the data.
        offset = 0
        length = len(data) - start - 1

    return (offset, length)


def read_packet(data, offset=0, max_size=MAX_PACKET_SIZE):
    """
    Returns a RawPacket constructed from 'data' at index 'offset'. If there
    is a next packet, it will be found at offset + packet.length.
    """
    header_start = offset
    if header_start >= len(data):
        raise TruncatedPacket('no packet at offset %d' % (offset,))
    ctb = data[header_start]

    # 7th bit of the first byte must be a 1
    if not ctb & 0x80:
        raise MalformedPacket(
            'invalid packet header 0x%02x at offset %d' % (ctb, offset))

    # the header is in new format if bit 6 is set
    new = bool(ctb & 0x40)

    try:
        if new:
            # tag encoded in bits 5-0 (new packet format)
            tag = ctb & 0x3f
            # length is encoded in the second (and following) octet
            data_offset, data_length, partial = new_tag_length(
                data, header_start + 1)
        else:
            # tag encoded in bits 5-2, discard bits 1-0
            tag = (ctb & 0x3f) >> 2
            data_offset, data_length = old_tag_length(data, header_start)
            partial = False
    except (IndexError, MalformedPacket) as e:
        raise TruncatedPacket('bad length header at offset %d' % (offset,),
                              *e.args[1:])

    # first octet of the packet header handled
    data_offset += 1

    # The new format might encode data with Partial Body Length headers.
    # Then a packet consists of alternating header and data regions. The
    # last header of a packet is not a Partial Body Length header.
    chunks = []
    body_size = 0
    while True:
        data_start = header_start + data_offset
        next_header_start = data_start + data_length
        body_size += data_length
        if body_size > max_size:
            error = PacketTooLarge(
                'packet at offset %d is larger than %d bytes' % (
                    offset, max_size))
            if not partial and next_header_start <= len(data):
                # The framing is intact, so the packet can be stepped over.
                error.packet = RawPacket(
                    tag, b'', new=new, offset=offset,
                    length=next_header_start - offset, error=error)
            raise error
        if next_header_start > len(data):
            raise TruncatedPacket(
                'packet at offset %d needs %d bytes, have %d' % (
                    offset, data_length, len(data) - data_start))
        chunks.append(data[data_start:next_header_start])

        if not partial:
            break
        header_start = next_header_start
        data_offset, data_length, partial = new_tag_length(
            data, header_start)

    return RawPacket(tag, b''.join(chunks), new=new, offset=offset,
                     length=next_header_start - offset)


def iter_packets(data, offset=0, max_size=MAX_PACKET_SIZE):
    """
    A generator function returning RawPackets until the data runs out.
    """
    length = len(data)
    while offset < length:
        packet = read_packet(data, offset, max_size=max_size)
        offset += packet.length
        yield packet


class PacketReader(object):
    """
    Sequential packet access over binary data, such as that read from a
    .gpg or .sig file.
    """
    def __init__(self, data, max_size=MAX_PACKET_SIZE):
        if not data:
            raise MalformedPacket('no data to parse')
        self.data = bytes(data)
        self.length = len(self.data)
        self.max_size = max_size
        self.offset = 0     # where the next packet would start

    def packets(self, skip_large=False):
        """
        A generator function returning RawPackets. On a framing error the
        offset stays at the broken packet.

        With skip_large, a complete packet over max_size is returned
        without its body and with its error set, and reading goes on.
        """
        while self.offset < self.length:
            try:
                packet = read_packet(self.data, self.offset,
                                     max_size=self.max_size)
            except PacketTooLarge as e:
                if not skip_large or e.packet is None:
                    raise
                packet = e.packet
            self.offset += packet.length
            yield packet

    def __repr__(self):
        return '<%s: length %d>' % (self.__class__.__name__, self.length)


def encode_length(length):
    """
    The smallest new format (definite) length encoding for length.
    """
    if length < 192:
        return bytes((length,))
    elif length < 8384:
        length -= 192
        return bytes(((length >> 8) + 192, length & 0xff))
    elif length <= 0xffffffff:
        return b'\xff' + int4_bytes(length)
    raise PacketTooLarge('length %d does not fit a packet' % (length,))


def write_packet(tag, body):
    """
    Frame body as a new format packet with the given tag.
    """
    if not 0 <= tag <= 63:
        raise MalformedPacket('invalid packet tag %r' % (tag,))
    return bytes((0xc0 | tag,)) + encode_length(len(body)) + bytes(body)
