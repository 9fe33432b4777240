from paillier_tally.cli import build_parser, config_from_args, main, run_audit, run_keygen, run_vote
from paillier_tally.config import TallyConfig
from paillier_tally.sample_keys import N, P, PHI, Q
from paillier_tally.keygen import keys_from_totient, recover_primes
from paillier_tally.voting import encode_vote


def scripted(lines):
    remaining = iter(lines)

    def input_fn(prompt):
        try:
            return next(remaining)
        except StopIteration:
            raise EOFError
    return input_fn


def test_audit_session_end_to_end(cipher):
    c0 = cipher.encrypt(encode_vote(0), 17)
    c1 = cipher.encrypt(encode_vote(1), 23)
    c2 = cipher.encrypt(encode_vote(2), 29)
    output = []

    status = run_audit(
        TallyConfig(),
        scripted(["abc", f"{P},{Q}", str(c0), "junk", str(c0), str(c2), "pop", str(c1), "x"]),
        output.append,
    )

    assert status == 0
    assert output[0].startswith("Rejected")
    assert "m0 = 1" in output
    assert "m2 = 256" in output
    assert any(line.startswith("Rejected") for line in output[2:])
    assert "Candidate 0: 2 votes" in output
    assert "Candidate 1: 1 votes" in output
    assert "Candidate 2: 0 votes" in output
    assert output[-1] == "All voters and votes accounted for."


def test_audit_with_totient_and_public_modulus(cipher):
    output = []
    status = run_audit(
        TallyConfig(public_modulus=N),
        scripted([str(PHI), "pop", str(cipher.encrypt(2, 17)), "x"]),
        output.append,
    )
    assert status == 0
    assert "Nothing to undo." in output
    assert output[-1].startswith("Surplus of 1 votes")


def test_audit_aborts_on_end_of_input():
    output = []
    assert run_audit(TallyConfig(), scripted([f"{P},{Q}"]), output.append) == 1
    assert not any(line.startswith("Candidate") for line in output)


def test_vote_with_public_modulus(cipher):
    output = []
    assert run_vote(TallyConfig(public_modulus=N, chosen_candidate=2), output.append) == 0

    assert output[0].startswith("ri = ")
    assert output[1] == f"N = {N}"
    ciphertext = int(output[2].split(" = ")[1])
    assert cipher.decrypt(ciphertext, PHI) == encode_vote(2)


def test_vote_without_modulus_generates_keys():
    output = []
    assert run_vote(TallyConfig(), output.append) == 0
    assert [line.split(" = ")[0] for line in output] == ["ri", "N", "ci"]


def test_keygen_output_is_consistent():
    output = []
    assert run_keygen(TallyConfig(), output.append) == 0
    values = dict(line.split(" = ") for line in output)
    n, phi = int(values["N"]), int(values["phi(N)"])
    assert keys_from_totient(n, phi).n == n
    assert sorted(recover_primes(n, phi)) == sorted([int(values["p"]), int(values["q"])])


def test_config_from_args():
    args = build_parser().parse_args(["--voters", "32", "vote", "--candidate", "1", "--modulus", str(N)])
    config = config_from_args(args)
    assert config.num_voters == 32
    assert config.chosen_candidate == 1
    assert config.public_modulus == N


def test_main_rejects_invalid_config(capsys):
    assert main(["--voters", "1", "keygen"]) == 2
    assert "Configuration invalide" in capsys.readouterr().err


def test_main_keygen(capsys):
    assert main(["keygen"]) == 0
    assert "phi(N) = " in capsys.readouterr().out


def test_main_reports_setup_errors():
    # Module public trop petit pour 3 compteurs de 4 bits
    assert main(["vote", "--modulus", "15"]) == 1


def test_audit_rejects_ciphertexts_sharing_a_factor_with_n(cipher):
    c0 = cipher.encrypt(encode_vote(0), 17)
    output = []

    status = run_audit(TallyConfig(), scripted([f"{P},{Q}", str(c0), str(N), str(N), "x"]), output.append)

    assert status == 0
    assert sum(line.startswith("Rejected") for line in output) == 2
    assert "Candidate 0: 1 votes" in output
    assert output[-1] == "All voters and votes accounted for."


def test_audit_recovers_from_failed_finalization(cipher):
    c0 = cipher.encrypt(encode_vote(0), 17)
    c1 = cipher.encrypt(encode_vote(1), 23)
    output = []

    status = run_audit(
        TallyConfig(accumulator_bits=4),
        scripted([f"{P},{Q}", str(c0), str(c1), "x", "pop", "x"]),
        output.append,
    )

    assert status == 0
    assert any(line.startswith("Finalization failed") for line in output)
    assert "Candidate 0: 1 votes" in output
    assert output[-1] == "All voters and votes accounted for."
