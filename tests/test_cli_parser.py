"""Tests for the CLI command parser."""

import pytest

from cli.models import (
    DeleteCommand,
    DownloadCommand,
    ListCommand,
    LoginCommand,
    OpsCommand,
    PhotoCommand,
    PruneCommand,
    RevokeCommand,
    ShareCommand,
    SharedCommand,
    UploadCommand,
)
from cli.parser import ParseError, parse_command


@pytest.mark.parametrize('line, expected', [
    ('login alice', LoginCommand(principal='alice')),
    ('upload report.pdf', UploadCommand(path='report.pdf')),
    ('upload --profile me.png', UploadCommand(path='me.png', profile=True)),
    ('upload "my scan.pdf"', UploadCommand(path='my scan.pdf')),
    ('download scan.pdf', DownloadCommand(name='scan.pdf')),
    ('download scan.pdf out.pdf --owner bob', DownloadCommand(name='scan.pdf', output_path='out.pdf', owner='bob')),
    ('delete a.txt b.txt', DeleteCommand(names=('a.txt', 'b.txt'))),
    ('revoke scan.pdf bob', RevokeCommand(name='scan.pdf', grantee='bob')),
    ('list', ListCommand()),
    ('list images', ListCommand(category='images')),
    ('list --search lab documents', ListCommand(category='documents', query='lab')),
    ('shared', SharedCommand()),
    ('photo', PhotoCommand()),
    ('photo bob', PhotoCommand(principal='bob')),
    ('ops', OpsCommand()),
    ('ops 5', OpsCommand(limit=5)),
    ('prune', PruneCommand()),
])
def test_parses_commands(line, expected):
    assert parse_command(line) == expected


class TestShare:
    def test_defaults_to_view(self):
        cmd = parse_command('share scan.pdf bob')
        assert cmd == ShareCommand(name='scan.pdf', grantee='bob', can_view=True, can_download=False)

    def test_download_only(self):
        cmd = parse_command('share scan.pdf bob --download')
        assert cmd.can_download
        assert not cmd.can_view

    def test_both_with_expiry(self):
        cmd = parse_command('share scan.pdf bob --view --download --days 7')
        assert cmd.can_view and cmd.can_download
        assert cmd.expiry_days == 7

    @pytest.mark.parametrize('line', [
        'share scan.pdf bob --days 0',
        'share scan.pdf bob --days soon',
        'share scan.pdf bob --days',
        'share scan.pdf',
    ])
    def test_rejects(self, line):
        with pytest.raises(ParseError):
            parse_command(line)


@pytest.mark.parametrize('line', [
    '',
    '   ',
    'frobnicate',
    'login',
    'login alice bob',
    'upload',
    'download',
    'download a b c',
    'delete',
    'revoke scan.pdf',
    'list extra',
    'list images videos',
    'list --search',
    'photo a b',
    'ops 0',
    'ops many',
    'upload "unterminated',
])
def test_invalid_input(line):
    with pytest.raises(ParseError):
        parse_command(line)


def test_unknown_command_message():
    with pytest.raises(ParseError, match='Unknown command: frobnicate'):
        parse_command('frobnicate now')
