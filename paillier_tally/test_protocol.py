import pytest

from paillier_tally.sample_keys import N, P, PHI, Q
from paillier_tally.errors import InvalidKey, MalformedInput
from paillier_tally.fixed_width import FixedWidth
from paillier_tally.models import KeyPair
from paillier_tally.protocol import (
    Command, format_report, format_voter_output, parse_authority_secret, parse_ballot_line,
    parse_decimal,
)
from paillier_tally.voting import decode_tally

WIDTH = FixedWidth(128)


def test_parse_decimal():
    assert parse_decimal("0") == 0
    assert parse_decimal("100160063") == N


@pytest.mark.parametrize("text", ["", "abc", "-5", "+5", "1.5", " 12", "1e3", "１２"])
def test_parse_decimal_rejects(text):
    with pytest.raises(MalformedInput):
        parse_decimal(text)


def test_secret_as_primes():
    assert parse_authority_secret(f"{P},{Q}", WIDTH) == KeyPair(N, PHI)
    assert parse_authority_secret(f"{P},{Q}\n", WIDTH, public_modulus=N) == KeyPair(N, PHI)


def test_secret_as_totient():
    assert parse_authority_secret(str(PHI), WIDTH, public_modulus=N) == KeyPair(N, PHI)


@pytest.mark.parametrize("line", ["abc", f"{P}, {Q}", f"{P},{Q},3", f"{P},", ",", ""])
def test_malformed_secret(line):
    with pytest.raises(MalformedInput):
        parse_authority_secret(line, WIDTH, public_modulus=N)


def test_totient_needs_public_modulus():
    with pytest.raises(MalformedInput):
        parse_authority_secret(str(PHI), WIDTH)


def test_secret_not_matching_public_modulus():
    with pytest.raises(InvalidKey):
        parse_authority_secret(f"{P},10037", WIDTH, public_modulus=N)
    with pytest.raises(InvalidKey):
        parse_authority_secret(str(PHI + 2), WIDTH, public_modulus=N)


def test_parse_ballot_line():
    assert parse_ballot_line("x").command is Command.FINALIZE
    assert parse_ballot_line("pop\n").command is Command.UNDO
    ballot = parse_ballot_line(" 42 ")
    assert ballot.command is Command.BALLOT
    assert ballot.ciphertext == 42
    with pytest.raises(MalformedInput):
        parse_ballot_line("X")


def test_format_voter_output():
    assert format_voter_output(17, N, 99) == ["ri = 17", f"N = {N}", "ci = 99"]


def test_format_report():
    result = decode_tally(35, 5, 16, 3)
    lines = format_report(result)
    assert lines[1] == "m = 35"
    assert lines[2:5] == ["Candidate 0: 3 votes", "Candidate 1: 2 votes", "Candidate 2: 0 votes"]
    assert lines[-1] == "All voters and votes accounted for."
