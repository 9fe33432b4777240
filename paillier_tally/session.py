import logging
from enum import Enum
from typing import Callable, List, Optional

from paillier_tally.config import TallyConfig
from paillier_tally.errors import SessionStateError, TallyError
from paillier_tally.fixed_width import FixedWidth
from paillier_tally.models import KeyPair
from paillier_tally.paillier import PaillierCipher
from paillier_tally.voting import TallyResult, check_capacity, combine_encrypted_votes, decode_tally

logger = logging.getLogger(__name__)


class SessionState(Enum):
    COLLECTING = "collecting"
    FINALIZING = "finalizing"
    REPORTED = "reported"


class AuditSession:
    """
    Session d'audit côté autorité : collecte des bulletins chiffrés,
    annulation du dernier, puis agrégation et dépouillement.

    Chaque bulletin soumis est déchiffré et affiché immédiatement
    (transparence de l'audit) avant d'être empilé.
    """

    def __init__(self, key_pair: KeyPair, config: TallyConfig,
                 width: Optional[FixedWidth] = None,
                 echo: Callable[[str], None] = print):
        self.key_pair = key_pair
        self.config = config
        self.cipher = PaillierCipher(key_pair.public, width or FixedWidth(config.working_bits))
        self.echo = echo
        self.state = SessionState.COLLECTING
        self.stack: List[int] = []
        self.result: Optional[TallyResult] = None

        check_capacity(key_pair.n, config.num_voters, config.num_candidates)
        self.cipher.prepare()

    @property
    def ballot_count(self) -> int:
        return len(self.stack)

    def _require(self, state: SessionState, action: str):
        if self.state is not state:
            raise SessionStateError(f"{action} impossible dans l'état {self.state.value}")

    def submit(self, ciphertext: int) -> int:
        """
        Déchiffre, affiche puis empile un bulletin

        Returns:
            int: Le message déchiffré du bulletin

        Raises:
            MalformedInput: Si le chiffré est hors de ]0, N²[ ou non premier avec N (la pile est inchangée)
            SessionStateError: Si la session n'est plus en collecte
        """
        self._require(SessionState.COLLECTING, "Soumission")
        plaintext = self.cipher.decrypt(ciphertext, self.key_pair.phi_n)
        self.echo(f"m{len(self.stack)} = {plaintext}")
        self.stack.append(ciphertext)
        return plaintext

    def undo(self) -> Optional[int]:
        """Retire le dernier bulletin s'il existe ; sinon ne fait rien"""
        self._require(SessionState.COLLECTING, "Annulation")
        if not self.stack:
            logger.info("Annulation ignorée : aucun bulletin")
            return None
        return self.stack.pop()

    def terminate(self) -> TallyResult:
        """
        Clôt la collecte : agrégation, déchiffrement, décodage et rapprochement
        """
        self._require(SessionState.COLLECTING, "Clôture")
        self.state = SessionState.FINALIZING

        try:
            aggregate = combine_encrypted_votes(self.stack, self.cipher.context)
            plaintext = self.cipher.decrypt(aggregate, self.key_pair.phi_n)
            decoded = decode_tally(
                plaintext,
                self.ballot_count,
                self.config.num_voters,
                self.config.num_candidates,
                self.config.accumulator_bits,
            )
        except TallyError:
            # Les bulletins restent dans la pile, la collecte peut reprendre
            self.state = SessionState.COLLECTING
            raise

        self.result = TallyResult(
            votes=decoded.votes,
            ballots=decoded.ballots,
            aggregate_ciphertext=aggregate,
            aggregate_plaintext=plaintext,
            leftover=decoded.leftover,
        )

        if self.result.difference:
            logger.warning(self.result.message())
        self.state = SessionState.REPORTED
        return self.result
