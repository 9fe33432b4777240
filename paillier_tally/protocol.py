"""
Protocole texte ligne par ligne entre votant et autorité.

Côté votant :   ri = <r> / N = <N> / ci = <chiffré>
Côté autorité : "p,q" ou φ(N), puis un bulletin par ligne ("x" clôt, "pop" annule)
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from paillier_tally.errors import InvalidKey, MalformedInput
from paillier_tally.fixed_width import FixedWidth
from paillier_tally.keygen import keys_from_primes, keys_from_totient
from paillier_tally.models import KeyPair
from paillier_tally.voting import TallyResult

FINALIZE_TOKEN = "x"
UNDO_TOKEN = "pop"


class Command(Enum):
    FINALIZE = "finalize"
    UNDO = "undo"
    BALLOT = "ballot"


@dataclass(frozen=True)
class BallotCommand:
    command: Command
    ciphertext: Optional[int] = None


def parse_decimal(text: str, field: str = "valeur") -> int:
    """Lit un entier décimal non signé, sans espace ni signe"""
    if not text or not text.isascii() or not text.isdigit():
        raise MalformedInput(f"{field} n'est pas un entier décimal : {text!r}")
    return int(text)


def parse_authority_secret(line: str, width: FixedWidth,
                           public_modulus: Optional[int] = None) -> KeyPair:
    """
    Lit le secret de l'autorité : "p,q" ou φ(N)

    Args:
        line: Ligne saisie
        width: Largeur de travail
        public_modulus: N public connu, requis pour un φ(N) seul

    Returns:
        KeyPair: La paire de clés reconstruite

    Raises:
        MalformedInput: Si la ligne est illisible
        InvalidKey: Si le secret est incohérent ou ne correspond pas à N
    """
    line = line.strip()
    fields = line.split(",")
    if len(fields) == 2:
        p = parse_decimal(fields[0], "p")
        q = parse_decimal(fields[1], "q")
        key_pair = keys_from_primes(p, q, width)
        if public_modulus is not None and key_pair.n != public_modulus:
            raise InvalidKey("p*q ne correspond pas au module public N")
        return key_pair
    if len(fields) != 1:
        raise MalformedInput(f"Attendu \"p,q\" ou φ(N), reçu {len(fields)} champs")

    phi_n = parse_decimal(fields[0], "φ(N)")
    if public_modulus is None:
        raise MalformedInput("φ(N) seul exige un module public N connu, saisir \"p,q\"")
    return keys_from_totient(public_modulus, phi_n)


def parse_ballot_line(line: str) -> BallotCommand:
    token = line.strip()
    if token == FINALIZE_TOKEN:
        return BallotCommand(Command.FINALIZE)
    if token == UNDO_TOKEN:
        return BallotCommand(Command.UNDO)
    return BallotCommand(Command.BALLOT, parse_decimal(token, "chiffré"))


def format_voter_output(r: int, n: int, ciphertext: int) -> List[str]:
    return [f"ri = {r}", f"N = {n}", f"ci = {ciphertext}"]


def format_report(result: TallyResult) -> List[str]:
    """Lignes affichées à la clôture de la session"""
    lines = [
        f"c = {result.aggregate_ciphertext}",
        f"m = {result.aggregate_plaintext}",
    ]
    for i, count in enumerate(result.votes):
        lines.append(f"Candidate {i}: {count} votes")
    lines.append(result.message())
    return lines
