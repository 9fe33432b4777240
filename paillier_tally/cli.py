import argparse
import logging
import sys
from typing import Callable, List, Optional

from pydantic import ValidationError

from paillier_tally.config import (
    ACCUMULATOR_BITS, CHOSEN_CANDIDATE, NUM_CANDIDATES, NUM_VOTERS, PRIME_BITS, WORKING_BITS,
    TallyConfig,
)
from paillier_tally.errors import InvalidKey, MalformedInput, TallyError
from paillier_tally.fixed_width import FixedWidth
from paillier_tally.keygen import generate_keys, recover_primes
from paillier_tally.models import PublicKey
from paillier_tally.paillier import PaillierCipher
from paillier_tally.protocol import (
    Command, format_report, format_voter_output, parse_authority_secret, parse_ballot_line,
)
from paillier_tally.session import AuditSession
from paillier_tally.voting import cast_vote, check_capacity

logger = logging.getLogger(__name__)

Output = Callable[[str], None]
Input = Callable[[str], str]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="paillier-tally",
        description="Dépouillement homomorphe de votes chiffrés avec Paillier",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Journalisation détaillée")
    parser.add_argument("--working-bits", type=int, default=WORKING_BITS)
    parser.add_argument("--voters", type=int, default=NUM_VOTERS)
    parser.add_argument("--candidates", type=int, default=NUM_CANDIDATES)
    parser.add_argument("--prime-bits", type=int, default=PRIME_BITS)
    parser.add_argument("--accumulator-bits", type=int, default=ACCUMULATOR_BITS)
    parser.add_argument("--randomness", choices=["uniform", "safe_prime"], default="uniform")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("keygen", help="Génère une paire de clés (autorité)")

    vote = commands.add_parser("vote", help="Chiffre un vote (votant)")
    vote.add_argument("--candidate", type=int, default=CHOSEN_CANDIDATE)
    vote.add_argument("--modulus", type=int, help="Module public N de l'autorité")

    audit = commands.add_parser("audit", help="Collecte et dépouille les bulletins (autorité)")
    audit.add_argument("--modulus", type=int, help="Module public N, requis pour saisir φ(N) seul")
    return parser


def config_from_args(args: argparse.Namespace) -> TallyConfig:
    candidate = getattr(args, "candidate", None)
    return TallyConfig(
        working_bits=args.working_bits,
        num_voters=args.voters,
        num_candidates=args.candidates,
        chosen_candidate=CHOSEN_CANDIDATE if candidate is None else candidate,
        prime_bits=args.prime_bits,
        accumulator_bits=args.accumulator_bits,
        public_modulus=getattr(args, "modulus", None),
        randomness=args.randomness,
    )


def run_keygen(config: TallyConfig, output: Output = print) -> int:
    key_pair = generate_keys(config.prime_bits, FixedWidth(config.working_bits))
    p, q = recover_primes(key_pair.n, key_pair.phi_n)
    output(f"p = {p}")
    output(f"q = {q}")
    output(f"N = {key_pair.n}")
    output(f"phi(N) = {key_pair.phi_n}")
    return 0


def run_vote(config: TallyConfig, output: Output = print) -> int:
    """Chiffre le vote du candidat choisi sous la clé publique de l'autorité"""
    width = FixedWidth(config.working_bits)
    if config.public_modulus is None:
        # Sans N fourni, le votant joue aussi le rôle de l'autorité
        public_key = generate_keys(config.prime_bits, width).public
    else:
        public_key = PublicKey(config.public_modulus)

    check_capacity(public_key.n, config.num_voters, config.num_candidates)
    cipher = PaillierCipher(public_key, width)
    r, ciphertext = cast_vote(cipher, config)
    for line in format_voter_output(r, public_key.n, ciphertext):
        output(line)
    return 0


def run_audit(config: TallyConfig, input_fn: Input = input, output: Output = print) -> int:
    """
    Boucle interactive de l'autorité

    Une saisie illisible ne rejette que la ligne concernée ; la session se
    termine uniquement sur "x".
    """
    width = FixedWidth(config.working_bits)
    try:
        key_pair = None
        while key_pair is None:
            line = input_fn("p,q or phi(N): ")
            try:
                key_pair = parse_authority_secret(line, width, config.public_modulus)
            except (MalformedInput, InvalidKey) as e:
                output(f"Rejected: {e}")

        session = AuditSession(key_pair, config, width, echo=output)
        result = None
        while result is None:
            line = input_fn(f"[{session.ballot_count}] ")
            try:
                ballot = parse_ballot_line(line)
            except MalformedInput as e:
                output(f"Rejected: {e}")
                continue

            if ballot.command is Command.FINALIZE:
                try:
                    result = session.terminate()
                except TallyError as e:
                    # La session reste en collecte, les bulletins sont conservés
                    output(f"Finalization failed: {e}")
            elif ballot.command is Command.UNDO:
                if session.undo() is None:
                    output("Nothing to undo.")
            else:
                try:
                    session.submit(ballot.ciphertext)
                except MalformedInput as e:
                    output(f"Rejected: {e}")
    except EOFError:
        logger.error("Fin de l'entrée avant la clôture : session abandonnée")
        return 1

    for line in format_report(result):
        output(line)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] [%(filename)s:%(lineno)d] %(message)s",
    )

    try:
        config = config_from_args(args)
    except ValidationError as e:
        print(f"Configuration invalide :\n{e}", file=sys.stderr)
        return 2

    try:
        if args.command == "keygen":
            return run_keygen(config)
        if args.command == "vote":
            return run_vote(config)
        return run_audit(config)
    except TallyError as e:
        logger.error("%s : %s", type(e).__name__, e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
