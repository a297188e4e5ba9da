"""
Tests for the command line interface.
"""

import argparse
import json

import httpx
import pytest

from consent_manager.cli import main as cli_main
from consent_manager.cli.main import build_parser, main, parse_choices
from consent_manager.services.consent_delivery import CONSENT_QUEUE_KEY, ConsentDeliveryManager
from consent_manager.services.local_storage import InMemoryStorage

SITE_A = "11111111-1111-4111-8111-111111111111"
SITE_B = "22222222-2222-4222-8222-222222222222"


def test_parse_choices():
    assert parse_choices(['necessary=true', 'analytics=False', 'marketing=0']) == {
        'necessary': True, 'analytics': False, 'marketing': False
    }


@pytest.mark.parametrize("value", ['necessary', '=true', 'analytics=maybe'])
def test_parse_choices_rejects_bad_input(value):
    with pytest.raises(argparse.ArgumentTypeError):
        parse_choices([value])


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_resolve_site_from_url_param(capsys):
    assert main(['resolve-site', f"https://example.com/?siteId={SITE_A}"]) == 0
    assert capsys.readouterr().out.strip() == SITE_A


def test_resolve_site_from_default(monkeypatch, capsys):
    monkeypatch.setenv('DEFAULT_SITE_ID', SITE_A)

    assert main(['resolve-site', "https://unknown.example.org/"]) == 0
    assert capsys.readouterr().out.strip() == SITE_A


def test_resolve_site_not_found():
    assert main(['resolve-site', "https://unknown.example.org/"]) == 1


def test_resolve_site_invalid_id():
    assert main(['resolve-site', "https://example.com/?siteId=nope"]) == 2


def test_submit_also_delivers_previously_queued_consent(monkeypatch):
    storage = InMemoryStorage({CONSENT_QUEUE_KEY: json.dumps([{
        'siteId': SITE_A,
        'userId': None,
        'choices': {'necessary': True},
        'queuedAt': '2024-01-15T12:00:00Z',
    }])})
    posted = []

    def handler(request):
        posted.append(json.loads(request.content)['siteId'])
        return httpx.Response(201, json={'message': 'Consent recorded successfully'})

    monkeypatch.setattr(
        cli_main,
        '_delivery_manager',
        lambda config: ConsentDeliveryManager(
            storage=storage,
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        ),
    )

    assert main(['submit', '--site-id', SITE_B, 'necessary=true', 'analytics=false']) == 0
    assert sorted(posted) == [SITE_A, SITE_B]
    assert json.loads(storage.get(CONSENT_QUEUE_KEY)) == []
