"""
Le chiffrement de Paillier est additif !

Avec g = N + 1, le chiffrement d'un message m est :
    c = g^m * r^N mod N²

Quand on multiplie deux chiffrés c1 et c2 :
    c1*c2 = g^(m1+m2) * (r1*r2)^N mod N²

C'est exactement la forme d'un chiffrement de (m1+m2) avec l'aléa r1*r2.

Déchiffrement : c^φ(N) fait disparaître le masque (r^(N*φ(N)) = 1 mod N²) et
laisse (1+N)^(m*φ(N)) = 1 + m*φ(N)*N mod N². On isole m*φ(N) par
soustraction et division par N, puis on multiplie par φ(N)^(-1) mod N.
"""
import logging
from typing import Optional

from Crypto.Util.number import GCD, inverse

from paillier_tally.config import WORKING_BITS
from paillier_tally.errors import EncodingOverflow, InvalidRandomness, MalformedInput, NoInverse
from paillier_tally.fixed_width import FixedWidth
from paillier_tally.models import PublicKey
from paillier_tally.montgomery import ModulusContext, build_context, mont_mul, mont_pow, powmod, retrieve, to_residue

logger = logging.getLogger(__name__)


class PaillierCipher:
    def __init__(self, public_key: PublicKey, width: Optional[FixedWidth] = None):
        """
        Initialise le chiffrement pour une clé publique

        Args:
            public_key: Clé publique (N)
            width: Largeur de travail, N² doit y tenir
        """
        self.public_key = public_key
        self.width = width or FixedWidth(WORKING_BITS)
        self._context: Optional[ModulusContext] = None

    @property
    def n(self) -> int:
        return self.public_key.n

    @property
    def n_square(self) -> int:
        """N², vérifié contre la largeur de travail"""
        return self.width.checked_square(self.n, "N²")

    @property
    def context(self) -> ModulusContext:
        """Contexte de Montgomery sur N², construit au premier usage puis réutilisé"""
        if self._context is None:
            self._context = build_context(self.n_square)
        return self._context

    def prepare(self) -> ModulusContext:
        """Construit N² et le contexte immédiatement : un dépassement apparaît dès la configuration"""
        return self.context

    def encrypt(self, plaintext: int, r: int) -> int:
        """
        Chiffre un message : c = (N+1)^m * r^N mod N²

        Args:
            plaintext: Le message, dans [0, N)
            r: Aléa de masquage frais, premier avec N

        Returns:
            int: Le chiffré, dans [0, N²)

        Raises:
            EncodingOverflow: Si le message n'est pas dans [0, N)
            InvalidRandomness: Si r est hors de [1, N²) ou non premier avec N
            ArithmeticOverflow: Si N+1 ou N² dépasse la largeur de travail
        """
        n = self.n
        if not 0 <= plaintext < n:
            raise EncodingOverflow(f"Le message doit être dans [0, N) (reçu {plaintext})")
        g = self.width.checked_add(n, 1, "N+1")
        ctx = self.context
        if not 0 < r < ctx.modulus or GCD(r, n) != 1:
            raise InvalidRandomness("L'aléa doit être dans [1, N²) et premier avec N")

        g_pow_m = mont_pow(to_residue(g, ctx), plaintext, ctx)
        r_pow_n = mont_pow(to_residue(r, ctx), n, ctx)
        ciphertext = retrieve(mont_mul(g_pow_m, r_pow_n, ctx), ctx)
        logger.debug("Message chiffré (%d bits)", ciphertext.bit_length())
        return ciphertext

    def decrypt(self, ciphertext: int, phi_n: int) -> int:
        """
        Déchiffre un chiffré avec la clé privée φ(N)

        Args:
            ciphertext: Le chiffré, dans ]0, N²[
            phi_n: La clé privée φ(N)

        Returns:
            int: Le message, dans [0, N)

        Raises:
            MalformedInput: Si le chiffré est hors de ]0, N²[ ou non premier avec N
            NoInverse: Si φ(N) n'est pas inversible modulo N
        """
        n = self.n
        ctx = self.context
        if not 0 < ciphertext < ctx.modulus:
            raise MalformedInput("Le chiffré doit être dans ]0, N²[")
        # Seuls les inversibles modulo N² sont des chiffrés de Paillier
        if GCD(ciphertext, n) != 1:
            raise MalformedInput("Le chiffré doit être premier avec N")
        if GCD(phi_n, n) != 1:
            raise NoInverse("φ(N) n'a pas d'inverse modulo N")

        d1 = powmod(ciphertext, phi_n, ctx)
        d2 = ((d1 - 1) // n) % n
        d3 = inverse(phi_n, n)
        plaintext = (d2 * d3) % n
        logger.debug("Chiffré déchiffré")
        return plaintext
