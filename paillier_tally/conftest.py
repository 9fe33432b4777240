import pytest

from paillier_tally.config import TallyConfig
from paillier_tally.fixed_width import FixedWidth
from paillier_tally.models import KeyPair, PublicKey
from paillier_tally.paillier import PaillierCipher
from paillier_tally.sample_keys import N, PHI


@pytest.fixture
def key_pair():
    return KeyPair(n=N, phi_n=PHI)


@pytest.fixture
def cipher():
    return PaillierCipher(PublicKey(N), FixedWidth(128))


@pytest.fixture
def config():
    return TallyConfig()
