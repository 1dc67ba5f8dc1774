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
import errno
import logging
import os
import sys
from getopt import GetoptError, gnu_getopt
from getpass import getpass

from pgpringlib import VERSION_STRING
from pgpringlib.armor import MESSAGE, PRIVATE_KEY_BLOCK, PUBLIC_KEY_BLOCK
from pgpringlib.armor import SIGNATURE, armor
from pgpringlib.constants import KeyType
from pgpringlib.exceptions import PgpringException, UserError
from pgpringlib.keyring import save_keys
from pgpringlib.openpgp import OpenPGP, read_file, write_file

log = logging.getLogger(__name__)

DEFAULT_KEYRING = '~/.pgpring/keyring.gpg'


def parse_pgpringrc():
    '''
    Read ~/.pgpringrc for default arguments.

    "There was a facility that would execute a bunch of commands stored
    in a file; it was called runcom for "run commands", and the file
    began to be called "a runcom". rc in Unix is a fossil from that
    usage."
    '''
    try:
        with open(os.path.expanduser('~/.pgpringrc'), 'r') as file:
            return file.read().split()
    except OSError as e:
        if e.errno != errno.ENOENT:
            sys.stderr.write('WARNING: cannot read .pgpringrc: %s\n' % (
                e.strerror,))
    return []


def parse_options(args):
    '''
    Parse command line options, with default options read from the
    .pgpringrc file prefixed. This way you can set defaults there, like
    the --keyring, but it can be overridden manually.
    '''
    rc_args = parse_pgpringrc()

    try:
        optlist, args = gnu_getopt(
            [args[0]] + rc_args + args[1:],  # inject defaults
            'hVlfeisbu:' + 'ak:o:v',  # command options + config options
            ('help', 'version', 'list', 'fingerprint', 'export', 'import',
             'sign', 'detach-sign', 'verify', 'local-user=')
            + ('armor', 'keyring=', 'output=', 'secret', 'verbose')
        )
    except GetoptError as e:
        raise UserError(str(e))

    config = {
        'armor': False,
        'detach': False,
        'keyrings': [],
        'local_user': None,
        'output': None,
        'secret': False,
        'verbose': False,
    }

    commands = {
        '--help': 'help', '-h': 'help',
        '--version': 'version', '-V': 'version',
        '--list': 'list', '-l': 'list',
        '--fingerprint': 'fingerprint', '-f': 'fingerprint',
        '--export': 'export', '-e': 'export',
        '--import': 'import', '-i': 'import',
        '--sign': 'sign', '-s': 'sign',
        '--detach-sign': 'sign', '-b': 'sign',
        '--verify': 'verify',
    }

    command = None
    for option, arg in optlist:
        # Command options
        if option in commands:
            if option in ('--detach-sign', '-b'):
                config['detach'] = True
            new_command = commands[option]
            if command in (None, new_command) or new_command == 'help':
                command = new_command  # always allow -h
            elif command != 'help':
                command = 'multiple_commands'

        # Configuration options
        elif option in ('--armor', '-a'):
            config['armor'] = True
        elif option in ('--keyring', '-k'):
            config['keyrings'].append(os.path.expanduser(arg))
        elif option in ('--local-user', '-u'):
            config['local_user'] = arg
        elif option in ('--output', '-o'):
            config['output'] = arg
        elif option in ('--secret',):
            config['secret'] = True
        elif option in ('--verbose', '-v'):
            config['verbose'] = True

        else:
            raise NotImplementedError('Unhandled option', option)

    if command == 'multiple_commands':
        raise UserError('multiple command options encountered, see -h')

    if not config['keyrings']:
        config['keyrings'].append(os.path.expanduser(
            os.environ.get('PGPRING_KEYRING', DEFAULT_KEYRING)))

    return command, args[1:], config  # drop argv0


def ask_passphrase(key):
    if 'PGPRING_PASSPHRASE' in os.environ:
        return os.environ['PGPRING_PASSPHRASE']
    if not sys.stdin.isatty():
        return None
    return getpass('Passphrase for %s (%s): ' % (
        key.key_id_hex, ', '.join(key.uids)))


def write_output(config, data, block=None):
    if config['armor'] and block:
        data = armor(data, block).encode('ascii')
    if config['output']:
        write_file(config['output'], data)
    else:
        sys.stdout.buffer.write(data)
        sys.stdout.flush()


def print_keys(keys, fingerprints=False):
    for key in keys:
        kind = ('pub', 'sec')[key.is_secret]
        primary = key.primary
        print('%s   %s/%d %s [0x%s]' % (
            kind, primary.pub_algorithm, primary.bitlen,
            key.created.strftime('%Y-%m-%d'), key.key_id_hex))
        if fingerprints:
            print('      %s' % (key.fingerprint_hex,))
        for uid in key.uids:
            print('uid   %s' % (uid,))
        for subkey in key.subkeys:
            print('%s   %s/%d %s [0x%s]' % (
                ('sub', 'ssb')[subkey.packet.is_secret],
                subkey.packet.pub_algorithm, subkey.packet.bitlen,
                subkey.packet.created.strftime('%Y-%m-%d'),
                subkey.key_id_hex))
        print('')


def run_command(command, args, config):
    pgp = OpenPGP(passphrase_callback=ask_passphrase)
    for keyring in config['keyrings']:
        if command == 'import' and not os.path.exists(keyring):
            continue  # importing creates it
        pgp.load_keys_from_keyring(keyring)

    if command in ('list', 'fingerprint'):
        if len(args) > 1:
            raise UserError('unexpected argument')
        key_type = (KeyType.PUBLIC, KeyType.SECRET)[config['secret']]
        keys = pgp.get_keys_of_type(key_type)
        if args:
            keys = [key for key in keys if key.matches_userid(args[0]) or
                    key.matches_identifier(args[0])]
            if not keys:
                raise UserError('no keys match %s' % (args[0],))
        print_keys(keys, fingerprints=(command == 'fingerprint'))

    elif command == 'export':
        key_type = (KeyType.PUBLIC, KeyType.SECRET)[config['secret']]
        keys = pgp.get_keys_of_type(key_type)
        if args:
            keys = [key for key in keys
                    if any(key.matches_identifier(i) for i in args)]
            if not keys:
                raise UserError('no keys match %s' % (' '.join(args),))
        block = (PUBLIC_KEY_BLOCK, PRIVATE_KEY_BLOCK)[config['secret']]
        write_output(config, save_keys(keys), block)

    elif command == 'import':
        if not args:
            raise UserError('need one or more files to import')
        for path in args:
            keys = pgp.load_keys_from_keyring(path)
            for key in keys:
                sys.stderr.write('key 0x%s: imported %s\n' % (
                    key.key_id_hex, ', '.join(key.uids)))
        keyring = config['keyrings'][0]
        directory = os.path.dirname(keyring)
        if directory and not os.path.isdir(directory):
            os.makedirs(directory, 0o700)
        pgp.save_keys_of_type(KeyType.ALL, keyring)

    elif command == 'sign':
        if len(args) != 1:
            raise UserError('need exactly one file to sign')
        data = read_file(args[0])
        if config['local_user']:
            signed = pgp.sign_data(data, userid=config['local_user'],
                                   detached=config['detach'])
        else:
            keys = pgp.get_keys_of_type(KeyType.SECRET)
            if not keys:
                raise UserError('no secret keys in keyring')
            signed = pgp.sign_data(data, secret_key=keys[0],
                                   detached=config['detach'])
        block = (MESSAGE, SIGNATURE)[config['detach']]
        write_output(config, signed, block)

    elif command == 'verify':
        if len(args) == 1:
            valid = pgp.verify_data(read_file(args[0]))
        elif len(args) == 2:
            valid = pgp.verify_data(read_file(args[1]),
                                    signature=read_file(args[0]))
        else:
            raise UserError('usage: --verify SIGNED | --verify SIG FILE')
        if not valid:
            sys.stderr.write('BAD signature\n')
            return 1
        sys.stderr.write('Good signature\n')

    else:
        raise NotImplementedError('Unknown command', command)

    return 0


def print_help():
    print(r'''pgpring %s CLI

Usage:
  pgpring --list [USERID]
    (list public keys, or secret keys with --secret)
  pgpring --export [--armor] [--secret] [KEYID...]
  pgpring --import FILE...
  pgpring --sign [--detach-sign] [-u USERID] [--armor] FILE
  pgpring --verify SIGNED
  pgpring --verify SIGNATURE FILE

Command options:
  --list, -l            List keys
  --fingerprint, -f     List keys with fingerprints
  --export, -e          Write keys to stdout (or --output)
  --import, -i          Add keys from files to the first keyring
  --sign, -s            Make a signed message
  --detach-sign, -b     Make a detached signature
  --verify              Check a signature (exit status 1 if bad)
  --help, -h            Show help and exit
  --version, -V         Print version

Configuration options:
  --armor, -a           ASCII armored output
  --keyring=FILE, -k    Keyring file (supply more to combine them)
  --local-user=ID, -u   Key to sign with (user ID, key ID or fingerprint)
  --output=FILE, -o     Write output to FILE instead of stdout
  --secret              Act on secret keys
  --verbose, -v         Verbose mode

Environment:
  PGPRING_KEYRING       Default keyring (%s)
  PGPRING_PASSPHRASE    Passphrase for secret keys (otherwise prompted)''' % (
        VERSION_STRING, DEFAULT_KEYRING))


def pgpring(args):
    command, args, config = parse_options(args)

    logging.basicConfig(
        level=(logging.WARNING, logging.DEBUG)[config['verbose']],
        format='%(levelname)s: %(name)s: %(message)s', stream=sys.stderr)

    if command == 'help':
        print_help()
        return 0
    elif command == 'version':
        print('pgpring %s CLI' % (VERSION_STRING,))
        return 0
    elif command is None:
        raise UserError('no command given, see -h')

    log.debug('executing %s with keyrings %r', command, config['keyrings'])
    return run_command(command, args, config)


def main(argv=None):
    if argv is None:
        argv = sys.argv
    try:
        return pgpring(argv)
    except KeyboardInterrupt:
        return 130  # 128+SIGINT
    except PgpringException as e:
        sys.stderr.write(': '.join(str(i) for i in e.args) + '\n')
        return 1


if __name__ == '__main__':
    sys.exit(main())
