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
from unittest import TestCase

from pgpringlib.armor import dearmor
from pgpringlib.constants import (
    CompressionAlgorithm, HashAlgorithm, KeyFlags, PubKeyAlgorithm,
    SignatureType, SubpacketType, SymmetricAlgorithm)
from pgpringlib.exceptions import (
    CryptBadKey, CryptBadPassword, CryptLockedKey, MalformedLength,
    MalformedPacket, PacketError, PacketTooLarge, UnsupportedAlgorithm,
    UnsupportedVersion)
from pgpringlib.packet import PacketReader, RawPacket, Tag
from pgpringlib.packets import (
    CompressedDataPacket, CorruptPacket, LiteralDataPacket,
    OnePassSignaturePacket, OpaquePacket, PublicKeyPacket,
    PublicSubkeyPacket, SecretKeyPacket, SignaturePacket, Subpacket,
    UserAttributePacket, UserIDPacket, construct_packet, decode_packets,
    parse_packets)
from pgpringlib.s2k import S2K, S2KUsage

from .keydata import (
    DSA_PUBKEY, ED25519_SECKEY, MESSAGE, PASSPHRASE, PROTECTED_SECKEY,
    RSA_CREATED, RSA_FINGERPRINT, RSA_KEYID, RSA_PUBKEY, RSA_SECKEY,
    RSA_SIGNED_MESSAGE, RSA_USERID)


def raw_packets(armored):
    return list(PacketReader(dearmor(armored)).packets())


class KeyPacketTest(TestCase):
    def test_public_key_sequence(self):
        packets = parse_packets(dearmor(RSA_PUBKEY))
        self.assertEqual(
            [type(i) for i in packets],
            [PublicKeyPacket, UserIDPacket, SignaturePacket,
             PublicSubkeyPacket, SignaturePacket])

    def test_bodies_survive_reencoding(self):
        for armored in (RSA_PUBKEY, RSA_SECKEY, PROTECTED_SECKEY,
                        DSA_PUBKEY, ED25519_SECKEY):
            for raw in raw_packets(armored):
                packet = construct_packet(raw)
                self.assertEqual(packet.body(), raw.data, packet)

    def test_public_key_fields(self):
        key = parse_packets(dearmor(RSA_PUBKEY))[0]
        self.assertEqual(key.version, 4)
        self.assertEqual(key.algorithm, PubKeyAlgorithm.RSA)
        self.assertEqual(key.creation_time, RSA_CREATED)
        self.assertEqual(key.created.year, 2026)
        self.assertEqual(key.bitlen, 1024)
        self.assertEqual(int(key.material.e), 65537)
        self.assertEqual(key.key_id_hex, RSA_KEYID)
        self.assertEqual(key.fingerprint, bytes.fromhex(RSA_FINGERPRINT))
        self.assertFalse(key.is_secret)
        self.assertFalse(key.is_subkey)

    def test_to_bytes_new_format(self):
        packets = parse_packets(dearmor(RSA_PUBKEY))
        data = b''.join(i.to_bytes() for i in packets)
        self.assertEqual(data[0], 0xc6)
        self.assertEqual(parse_packets(data), packets)

    def test_ec_curves(self):
        packets = parse_packets(dearmor(DSA_PUBKEY))
        dsa, ecdsa = [i for i in packets if i.tag == Tag.PUBLIC_KEY]
        self.assertEqual(dsa.algorithm, PubKeyAlgorithm.DSA)
        self.assertEqual(dsa.bitlen, 1024)
        self.assertEqual(ecdsa.algorithm, PubKeyAlgorithm.ECDSA)
        self.assertEqual(ecdsa.material.oid, '1.2.840.10045.3.1.7')
        self.assertEqual(ecdsa.material.curve[1], 'P-256')
        self.assertEqual(ecdsa.bitlen, 256)

        eddsa = parse_packets(dearmor(ED25519_SECKEY))[0]
        self.assertEqual(eddsa.material.oid, '1.3.6.1.4.1.11591.15.1')
        self.assertEqual(eddsa.material.point_bytes()[0], 0x40)

    def test_trailing_bytes(self):
        body = parse_packets(dearmor(RSA_PUBKEY))[0].body()
        self.assertRaises(MalformedPacket, PublicKeyPacket.parse,
                          body + b'\x00')

    def test_unknown_version(self):
        body = parse_packets(dearmor(RSA_PUBKEY))[0].body()
        self.assertRaises(UnsupportedVersion, PublicKeyPacket.parse,
                          b'\x05' + body[1:])

    def test_unknown_algorithm(self):
        body = parse_packets(dearmor(RSA_PUBKEY))[0].body()
        self.assertRaises(UnsupportedAlgorithm, PublicKeyPacket.parse,
                          body[:5] + b'\x63' + body[6:])

    def test_v3_key(self):
        material = parse_packets(dearmor(RSA_PUBKEY))[0].material
        key = PublicKeyPacket(3, RSA_CREATED, PubKeyAlgorithm.RSA, material,
                              days_valid=10)
        parsed = PublicKeyPacket.parse(key.body())
        self.assertEqual(parsed.version, 3)
        self.assertEqual(parsed.days_valid, 10)
        self.assertEqual(parsed, key)


class SecretKeyPacketTest(TestCase):
    def test_unprotected(self):
        packets = parse_packets(dearmor(RSA_SECKEY))
        key = packets[0]
        self.assertIsInstance(key, SecretKeyPacket)
        self.assertTrue(key.is_secret)
        self.assertFalse(key.is_protected)
        self.assertFalse(key.is_locked)
        self.assertEqual(int(key.secret_material.p) *
                         int(key.secret_material.q), int(key.material.n))
        self.assertEqual(key.key_id_hex, RSA_KEYID)

    def test_public_packet(self):
        secret = parse_packets(dearmor(RSA_SECKEY))[0]
        public = parse_packets(dearmor(RSA_PUBKEY))[0]
        self.assertEqual(secret.public_packet(), public)
        self.assertIsInstance(secret.public_packet(), PublicKeyPacket)

    def test_bad_checksum(self):
        body = parse_packets(dearmor(RSA_SECKEY))[0].body()
        broken = body[:-1] + bytes(((body[-1] + 1) & 0xff,))
        self.assertRaises(MalformedPacket, SecretKeyPacket.parse, broken)

    def test_protected(self):
        key = parse_packets(dearmor(PROTECTED_SECKEY))[0]
        self.assertTrue(key.is_protected)
        self.assertTrue(key.is_locked)
        self.assertFalse(key.is_dummy)
        self.assertEqual(key.s2k_usage, S2KUsage.ENCRYPTED_HASHED)
        self.assertEqual(key.sym_algorithm, SymmetricAlgorithm.AES128)
        self.assertEqual(key.s2k.specifier, S2K.ITERATED)
        self.assertEqual(key.s2k.hash_algorithm, HashAlgorithm.SHA1)
        self.assertEqual(key.s2k.count, 65011712)
        self.assertEqual(len(key.iv), 16)

    def test_unlock(self):
        key = parse_packets(dearmor(PROTECTED_SECKEY))[0]
        unlocked = key.unlock(PASSPHRASE)
        self.assertFalse(unlocked.is_locked)
        self.assertTrue(key.is_locked)  # the original is untouched
        secret = unlocked.secret_material
        self.assertEqual(int(secret.p) * int(secret.q),
                         int(key.material.n))
        # The wrapped form is written, unlocked or not.
        self.assertEqual(unlocked.body(), key.body())

    def test_unlock_bad_password(self):
        key = parse_packets(dearmor(PROTECTED_SECKEY))[0]
        self.assertRaises(CryptBadPassword, key.unlock, 'wrong')

    def test_unlock_without_passphrase(self):
        key = parse_packets(dearmor(PROTECTED_SECKEY))[0]
        self.assertRaises(CryptLockedKey, key.unlock, None)

    def test_protect(self):
        key = parse_packets(dearmor(RSA_SECKEY))[0]
        protected = key.protect('hunter2')
        self.assertFalse(protected.is_locked)
        self.assertEqual(protected.s2k_usage, S2KUsage.ENCRYPTED_HASHED)
        self.assertEqual(protected.sym_algorithm, SymmetricAlgorithm.AES256)

        parsed = SecretKeyPacket.parse(protected.body())
        self.assertTrue(parsed.is_locked)
        self.assertEqual(parsed.fingerprint, key.fingerprint)
        unlocked = parsed.unlock('hunter2')
        self.assertEqual(unlocked.secret_material, key.secret_material)
        self.assertRaises(CryptBadPassword, parsed.unlock, 'hunter3')

    def test_gnu_dummy(self):
        public_body = parse_packets(dearmor(RSA_PUBKEY))[0].public_body()
        body = public_body + b'\xff\x00\x65\x00GNU\x01'
        key = SecretKeyPacket.parse(body)
        self.assertTrue(key.is_dummy)
        self.assertTrue(key.is_locked)
        self.assertEqual(key.key_id_hex, RSA_KEYID)
        self.assertEqual(key.body(), body)
        self.assertRaises(CryptBadKey, key.unlock, PASSPHRASE)

    def test_unprotected_without_secret(self):
        public = parse_packets(dearmor(RSA_PUBKEY))[0]
        self.assertRaises(
            PacketError, SecretKeyPacket, 4, public.creation_time,
            public.algorithm, public.material)


class SignaturePacketTest(TestCase):
    def get_signatures(self):
        return [i for i in parse_packets(dearmor(RSA_PUBKEY))
                if isinstance(i, SignaturePacket)]

    def test_certification(self):
        sig = self.get_signatures()[0]
        self.assertEqual(sig.version, 4)
        self.assertEqual(sig.sig_type, SignatureType.POSITIVE_CERT)
        self.assertEqual(sig.algorithm, PubKeyAlgorithm.RSA)
        self.assertEqual(sig.hash_algorithm, HashAlgorithm.SHA512)
        self.assertEqual(sig.creation_time, RSA_CREATED)
        self.assertEqual(sig.issuer_hex, RSA_KEYID)
        self.assertEqual(sig.issuer_fingerprint,
                         bytes.fromhex(RSA_FINGERPRINT))
        self.assertEqual(sig.key_flags, KeyFlags.CERTIFY | KeyFlags.SIGN)
        self.assertEqual(len(sig.mpis), 1)
        self.assertEqual(sig.hash_algorithm_name, 'SHA512')

    def test_subkey_binding(self):
        sig = self.get_signatures()[1]
        self.assertEqual(sig.sig_type, SignatureType.SUBKEY_BINDING)
        self.assertEqual(sig.key_flags, KeyFlags.SIGN)
        self.assertEqual(
            len(sig.subpackets(SubpacketType.EMBEDDED_SIGNATURE)), 1)

    def test_hash_trailer(self):
        sig = self.get_signatures()[0]
        trailer = sig.hash_trailer()
        hashed = sig.hashed_data()
        self.assertEqual(trailer[:len(hashed)], hashed)
        self.assertEqual(trailer[len(hashed):],
                         b'\x04\xff' + len(hashed).to_bytes(4, 'big'))
        self.assertEqual(hashed[:4], b'\x04\x13\x01\x0a')

    def test_issuer_from_fingerprint(self):
        sig = self.get_signatures()[0]
        stripped = SignaturePacket(
            4, sig.sig_type, sig.algorithm, sig.hash_algorithm,
            hashed_subpackets=sig.hashed_subpackets, hash2=sig.hash2,
            mpis=sig.mpis)
        self.assertEqual(stripped.subpackets(SubpacketType.ISSUER), [])
        self.assertEqual(stripped.issuer_hex, RSA_KEYID)

    def test_v3(self):
        body = (b'\x03\x05\x00' + b'\x00\x00\x10\x00' +
                bytes.fromhex(RSA_KEYID) + b'\x01\x08' + b'\xab\xcd' +
                b'\x00\x09\x01\xff')
        sig = SignaturePacket.parse(body)
        self.assertEqual(sig.version, 3)
        self.assertEqual(sig.sig_type, SignatureType.BINARY)
        self.assertEqual(sig.creation_time, 0x1000)
        self.assertEqual(sig.issuer_hex, RSA_KEYID)
        self.assertEqual(sig.hash2, b'\xab\xcd')
        self.assertEqual([int(i) for i in sig.mpis], [511])
        self.assertEqual(sig.hash_trailer(), b'\x00\x00\x00\x10\x00')
        self.assertEqual(sig.body(), body)

    def test_v3_bad_material_length(self):
        body = (b'\x03\x04\x00' + b'\x00' * 14 + b'\xab\xcd' +
                b'\x00\x01\x01')
        self.assertRaises(MalformedPacket, SignaturePacket.parse, body)

    def test_truncated(self):
        body = self.get_signatures()[0].body()
        self.assertRaises(PacketError, SignaturePacket.parse, body[:20])

    def test_unknown_version(self):
        self.assertRaises(UnsupportedVersion, SignaturePacket.parse,
                          b'\x05' + b'\x00' * 20)


class SubpacketTest(TestCase):
    def test_parse_all(self):
        subpackets = Subpacket.parse_all(
            b'\x05\x02\x00\x00\x10\x00' + b'\x02\x9b\x03')
        self.assertEqual(len(subpackets), 2)
        self.assertEqual(subpackets[0].subtype, SubpacketType.CREATION_TIME)
        self.assertEqual(subpackets[0].data, b'\x00\x00\x10\x00')
        self.assertFalse(subpackets[0].critical)
        self.assertEqual(subpackets[1].subtype, SubpacketType.KEY_FLAGS)
        self.assertTrue(subpackets[1].critical)
        self.assertEqual(subpackets[1].name, 'Key Flags')
        self.assertEqual(subpackets[1].encode(), b'\x02\x9b\x03')

    def test_bad_lengths(self):
        self.assertRaises(MalformedPacket, Subpacket.parse_all, b'\x00')
        self.assertRaises(MalformedLength, Subpacket.parse_all,
                          b'\x05\x02\x00')


class UserPacketTest(TestCase):
    def test_userid(self):
        packet = parse_packets(dearmor(RSA_PUBKEY))[1]
        self.assertEqual(packet.userid, RSA_USERID)
        self.assertEqual(UserIDPacket(RSA_USERID), packet)

    def test_userid_utf8(self):
        packet = UserIDPacket('J\xf6rg <j@example.com>')
        self.assertEqual(packet.body(), b'J\xc3\xb6rg <j@example.com>')
        self.assertEqual(str(packet), 'J\xf6rg <j@example.com>')

    def test_attribute(self):
        packet = UserAttributePacket.parse(b'\x05\x01abcd')
        self.assertEqual(packet.subpackets, [(1, b'abcd')])
        self.assertEqual(packet.userid, '[image]')

    def test_attribute_overflow(self):
        self.assertRaises(MalformedLength, UserAttributePacket.parse,
                          b'\x09\x01ab')


class MessagePacketTest(TestCase):
    def test_signed_message(self):
        one_pass, literal, signature = parse_packets(
            dearmor(RSA_SIGNED_MESSAGE))
        self.assertIsInstance(one_pass, OnePassSignaturePacket)
        self.assertEqual(one_pass.issuer, bytes.fromhex(RSA_KEYID))
        self.assertEqual(one_pass.sig_type, SignatureType.BINARY)
        self.assertTrue(one_pass.nested)
        self.assertIsInstance(literal, LiteralDataPacket)
        self.assertEqual(literal.format, 'b')
        self.assertEqual(literal.filename, b'message.txt')
        self.assertEqual(literal.data, MESSAGE)
        self.assertEqual(literal.mtime, signature.creation_time)

    def test_one_pass_length(self):
        self.assertRaises(MalformedLength, OnePassSignaturePacket.parse,
                          b'\x03\x00')

    def test_literal_roundtrip(self):
        packet = LiteralDataPacket(b'data', format='t', filename='x.txt',
                                   mtime=1234)
        parsed = LiteralDataPacket.parse(packet.body())
        self.assertEqual((parsed.format, parsed.filename, parsed.mtime,
                          parsed.data), ('t', b'x.txt', 1234, b'data'))

    def test_compression(self):
        for algorithm in (CompressionAlgorithm.UNCOMPRESSED,
                          CompressionAlgorithm.ZIP,
                          CompressionAlgorithm.ZLIB,
                          CompressionAlgorithm.BZIP2):
            packet = CompressedDataPacket.compress(MESSAGE * 10, algorithm)
            parsed = CompressedDataPacket.parse(packet.body())
            self.assertEqual(parsed.algorithm, algorithm)
            self.assertEqual(parsed.decompress(), MESSAGE * 10)

    def test_decompression_bomb(self):
        for algorithm in (CompressionAlgorithm.ZIP,
                          CompressionAlgorithm.ZLIB,
                          CompressionAlgorithm.BZIP2):
            packet = CompressedDataPacket.compress(b'\x00' * 100000,
                                                   algorithm)
            self.assertRaises(PacketTooLarge, packet.decompress,
                              max_size=1000)

    def test_decompression_garbage(self):
        packet = CompressedDataPacket(CompressionAlgorithm.ZLIB, b'garbage')
        self.assertRaises(MalformedPacket, packet.decompress)

    def test_unknown_compression(self):
        packet = CompressedDataPacket(42, b'')
        self.assertRaises(UnsupportedAlgorithm, packet.decompress)


class ConstructTest(TestCase):
    def test_unknown_tag(self):
        packet = construct_packet(RawPacket(60, b'private'))
        self.assertIsInstance(packet, OpaquePacket)
        self.assertEqual(packet.tag, 60)
        self.assertEqual(packet.to_bytes(), b'\xfc\x07private')

    def test_corrupt_packets(self):
        raws = [
            RawPacket(Tag.PUBLIC_KEY, b'\x04\x00\x00\x00\x00\x01\x00\x10'),
            RawPacket(Tag.PUBLIC_KEY, b'\x05\x00\x00\x00\x00\x01'),
            RawPacket(Tag.USER_ID, b'ok'),
        ]
        first, second, third = decode_packets(raws)
        self.assertIsInstance(first, CorruptPacket)
        self.assertIsInstance(first.error, MalformedLength)
        self.assertIsInstance(second, CorruptPacket)
        self.assertIsInstance(second.error, UnsupportedVersion)
        self.assertEqual(second.body(), b'\x05\x00\x00\x00\x00\x01')
        self.assertIsInstance(third, UserIDPacket)

    def test_parse_packets_strict(self):
        data = b'\xc6\x02\x05\x00'
        self.assertRaises(UnsupportedVersion, parse_packets, data)
