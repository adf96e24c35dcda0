"""
Response token tests.

Verifies:
- Tokens are 64 lowercase hex characters (256 bits)
- No collisions over a large sample
- Collisions with existing tokens trigger regeneration
"""

import re

import pytest

from conftest import sample_payload

from purchase_portal.services import token_service
from purchase_portal.services.token_service import generate_response_token, generate_unique_token


HEX_64 = re.compile(r"^[0-9a-f]{64}$")


class TestTokenGeneration:

    def test_token_shape(self):
        assert HEX_64.match(generate_response_token())

    def test_no_collisions_in_large_sample(self):
        tokens = {generate_response_token() for _ in range(20000)}
        assert len(tokens) == 20000

    def test_regenerates_on_collision(self, monkeypatch):
        issued = iter(["a" * 64, "a" * 64, "b" * 64])
        monkeypatch.setattr(token_service, "generate_response_token", lambda: next(issued))

        token = generate_unique_token(lambda t: t == "a" * 64)

        assert token == "b" * 64

    def test_gives_up_after_repeated_collisions(self):
        with pytest.raises(RuntimeError):
            generate_unique_token(lambda t: True)


class TestTokenUniquenessInStore:

    def test_every_request_resolves_from_its_own_token(self, lifecycle):
        created = [lifecycle.create(sample_payload(employeeName=f"Employee {i}")) for i in range(25)]
        tokens = [r.response_token for r in created]

        assert len(set(tokens)) == len(tokens)
        for req in created:
            assert lifecycle.resolve_by_token(req.response_token).id == req.id
