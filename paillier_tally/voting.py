import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple

from Crypto.Util.number import GCD

from paillier_tally.config import ACCUMULATOR_BITS, NUM_CANDIDATES, NUM_VOTERS, TallyConfig
from paillier_tally.errors import EncodingOverflow, MalformedInput
from paillier_tally.fixed_width import FixedWidth
from paillier_tally.keygen import draw_randomness
from paillier_tally.montgomery import ModulusContext, mont_mul, retrieve, to_residue
from paillier_tally.paillier import PaillierCipher

logger = logging.getLogger(__name__)


class Reconciliation(Enum):
    SURPLUS = "surplus"
    EXACT = "exact"
    DEFICIT = "deficit"


@dataclass(frozen=True)
class TallyResult:
    """Résultat du dépouillement : votes par candidat et rapprochement avec les bulletins"""
    votes: List[int]
    ballots: int
    aggregate_ciphertext: Optional[int] = None
    aggregate_plaintext: Optional[int] = None
    leftover: int = field(default=0)  # Bits au-delà du dernier compteur

    @property
    def total(self) -> int:
        return sum(self.votes)

    @property
    def difference(self) -> int:
        return self.total - self.ballots

    @property
    def status(self) -> Reconciliation:
        if self.difference > 0:
            return Reconciliation.SURPLUS
        if self.difference < 0:
            return Reconciliation.DEFICIT
        return Reconciliation.EXACT

    def message(self) -> str:
        status = self.status
        if status is Reconciliation.SURPLUS:
            return (f"Surplus of {self.difference} votes... "
                    f"some ballots encode more than one vote.")
        if status is Reconciliation.DEFICIT:
            return f"Deficit of {-self.difference} votes."
        return "All voters and votes accounted for."


def bits_per_candidate(num_voters: int) -> int:
    """Nombre de bits du compteur de chaque candidat : floor(log2(num_voters))"""
    if num_voters < 2:
        raise ValueError("Il faut au moins 2 votants")
    return num_voters.bit_length() - 1


def encode_vote(candidate: int, num_voters: int = NUM_VOTERS,
                num_candidates: int = NUM_CANDIDATES) -> int:
    """
    Encode un vote : un 1 décalé dans le compteur du candidat choisi

    Args:
        candidate: Indice du candidat, dans [0, num_candidates)
        num_voters: Nombre de votants, fixe la largeur des compteurs
        num_candidates: Nombre de candidats

    Returns:
        int: Le message 1 << (candidate * bits)

    Raises:
        EncodingOverflow: Si le compteur du candidat sort de la capacité empaquetée
    """
    bits = bits_per_candidate(num_voters)
    shift = candidate * bits
    if candidate < 0 or shift >= bits * num_candidates:
        raise EncodingOverflow(
            f"Candidat {candidate} hors de la capacité de {num_candidates} compteurs"
        )
    return 1 << shift


def check_capacity(n: int, num_voters: int = NUM_VOTERS,
                   num_candidates: int = NUM_CANDIDATES) -> None:
    """Vérifie que le décompte empaqueté complet reste strictement sous N"""
    packed_bits = bits_per_candidate(num_voters) * num_candidates
    if 1 << packed_bits > n:
        raise EncodingOverflow(
            f"Le décompte sur {packed_bits} bits ne tient pas sous N ({n.bit_length()} bits)"
        )


def decode_tally(plaintext: int, ballot_count: int, num_voters: int = NUM_VOTERS,
                 num_candidates: int = NUM_CANDIDATES,
                 accumulator_bits: int = ACCUMULATOR_BITS) -> TallyResult:
    """
    Décode le résultat agrégé en votes par candidat

    Args:
        plaintext: Somme déchiffrée des messages
        ballot_count: Nombre de bulletins reçus, pour le rapprochement
        num_voters: Nombre de votants
        num_candidates: Nombre de candidats
        accumulator_bits: Largeur de l'accumulateur de décodage

    Returns:
        TallyResult: Votes par candidat et statut du rapprochement

    Raises:
        ArithmeticOverflow: Si le message ne tient pas dans l'accumulateur
    """
    FixedWidth(accumulator_bits).check(plaintext, "message agrégé")

    bits = bits_per_candidate(num_voters)
    mask = (1 << bits) - 1
    votes = [(plaintext >> (i * bits)) & mask for i in range(num_candidates)]

    leftover = plaintext >> (bits * num_candidates)
    if leftover:
        logger.warning("Bits résiduels au-delà du dernier compteur : %d", leftover)

    return TallyResult(
        votes=votes,
        ballots=ballot_count,
        aggregate_plaintext=plaintext,
        leftover=leftover,
    )


def combine_encrypted_votes(ciphertexts: Iterable[int], ctx: ModulusContext) -> int:
    """
    Combine les votes chiffrés en utilisant la propriété homomorphique

    Le produit modulo N² des chiffrés est un chiffré de la somme des messages.
    Sans bulletin, le résultat est l'élément neutre 1, qui se déchiffre en 0.
    """
    result = ctx.one
    count = 0
    for ciphertext in ciphertexts:
        if not 0 < ciphertext < ctx.modulus:
            raise MalformedInput("Le chiffré doit être dans ]0, N²[")
        if GCD(ciphertext, ctx.modulus) != 1:
            raise MalformedInput("Le chiffré doit être inversible modulo N²")
        result = mont_mul(result, to_residue(ciphertext, ctx), ctx)
        count += 1
    logger.debug("%d chiffrés combinés", count)
    return retrieve(result, ctx)


def cast_vote(cipher: PaillierCipher, config: TallyConfig,
              candidate: Optional[int] = None,
              randfunc: Optional[Callable[[int], bytes]] = None) -> Tuple[int, int]:
    """
    Crée et chiffre le vote d'un votant

    Args:
        cipher: Chiffrement sur la clé publique du scrutin
        config: Paramètres de l'élection
        candidate: Candidat choisi (par défaut config.chosen_candidate)
        randfunc: Source d'aléa sûre

    Returns:
        Tuple[int, int]: (r, c) l'aléa utilisé et le chiffré
    """
    if candidate is None:
        candidate = config.chosen_candidate
    message = encode_vote(candidate, config.num_voters, config.num_candidates)
    r = draw_randomness(cipher.public_key, config.randomness, config.prime_bits, randfunc)
    return r, cipher.encrypt(message, r)
