"""Stableswap invariant math.

Core math functions for amplified (Curve-style) pools over raw integer
balances. Uses Newton-Raphson iteration for the invariant and for the
balance that preserves it.

All functions use SafeInt for overflow protection and round against the
trader: amounts out lose one unit, amounts in gain one.
"""

from __future__ import annotations

from collections.abc import Sequence

from hydra_amm.errors import ConvergenceFailure, InsufficientLiquidity, InvalidConfiguration
from hydra_amm.safe_int import S

# Amplification is stored multiplied by this factor
AMP_PRECISION = 1_000

# Default maximum iterations for Newton-Raphson convergence
STABLE_MAX_ITERATIONS = 255


def calculate_invariant(
    amp: int, balances: Sequence[int], max_iterations: int = STABLE_MAX_ITERATIONS
) -> int:
    """Calculate the invariant D using Newton-Raphson iteration.

    Uses the parameterization where the iteration multiplies by A*n; the
    n^n factor enters through the iterative d_p term.

    Algorithm:
        1. Initial guess: D = sum(balances)
        2. Iterate until |D_new - D_old| <= 1
        3. Give up after max_iterations

    Args:
        amp: Amplification parameter (scaled by AMP_PRECISION)
        balances: Token balances
        max_iterations: Iteration bound

    Returns:
        The invariant D

    Raises:
        ConvergenceFailure: If iteration doesn't converge
        InvalidConfiguration: If any balance is zero
    """
    n_coins = len(balances)
    for i, balance in enumerate(balances):
        if balance <= 0:
            raise InvalidConfiguration(f"Balance at index {i} must be positive")

    sum_balances = S(sum(balances))
    d_prev = sum_balances
    amp_times_n = S(amp) * S(n_coins)

    for _ in range(max_iterations):
        # d_p = D^(n+1) / (n^n * prod(balances))
        d_p = d_prev
        for balance in balances:
            d_p = (d_p * d_prev) // (S(n_coins) * S(balance))

        numerator = ((amp_times_n * sum_balances) // S(AMP_PRECISION) + d_p * S(n_coins)) * d_prev
        denominator = ((amp_times_n - S(AMP_PRECISION)) * d_prev) // S(AMP_PRECISION) + S(
            n_coins + 1
        ) * d_p
        d_new = numerator // denominator

        if abs(d_new.value - d_prev.value) <= 1:
            return d_new.value
        d_prev = d_new

    raise ConvergenceFailure(f"Stable invariant did not converge after {max_iterations} iterations")


def get_token_balance_given_invariant_and_all_other_balances(
    amp: int,
    balances: Sequence[int],
    invariant: int,
    token_index: int,
    max_iterations: int = STABLE_MAX_ITERATIONS,
) -> int:
    """Solve for balances[token_index] given D and all other balances.

    The value currently at token_index is ignored except through the
    product and sum terms, which are corrected for it.

    Args:
        amp: Amplification parameter (scaled by AMP_PRECISION)
        balances: Token balances; entry token_index is the one solved for
        invariant: The invariant D to preserve
        token_index: Index of the unknown balance
        max_iterations: Iteration bound

    Returns:
        The balance at token_index that keeps D, rounded up

    Raises:
        ConvergenceFailure: If iteration doesn't converge
    """
    n_coins = len(balances)
    d = S(invariant)
    amp_times_total = S(amp) * S(n_coins)

    # P_D starts as balance[0] * n; then P_D = P_D * balance[j] * n / D
    sum_balances = S(balances[0])
    p_d = S(balances[0]) * S(n_coins)
    for j in range(1, n_coins):
        p_d = (p_d * S(balances[j]) * S(n_coins)) // d
        sum_balances = sum_balances + S(balances[j])

    sum_others = sum_balances - S(balances[token_index])
    inv2 = d * d

    amp_times_p_d = amp_times_total * p_d
    if amp_times_p_d == 0:
        raise ConvergenceFailure("Degenerate balances: amp * P_D is zero")
    c = inv2.ceiling_div(amp_times_p_d) * S(AMP_PRECISION) * S(balances[token_index])
    b = sum_others + (d // amp_times_total) * S(AMP_PRECISION)

    token_balance = (inv2 + c).ceiling_div(d + b)

    for _ in range(max_iterations):
        prev_token_balance = token_balance

        # tokenBalance = (tokenBalance^2 + c) / (2 * tokenBalance + b - D)
        denominator_value = 2 * token_balance.value + b.value - d.value
        if denominator_value <= 0:
            raise ConvergenceFailure("Stable balance iteration denominator became non-positive")
        token_balance = (token_balance * token_balance + c).ceiling_div(denominator_value)

        if abs(token_balance.value - prev_token_balance.value) <= 1:
            return token_balance.value

    raise ConvergenceFailure(
        f"Stable get_balance did not converge after {max_iterations} iterations"
    )


def stable_calc_out_given_in(
    amp: int,
    balances: Sequence[int],
    token_index_in: int,
    token_index_out: int,
    amount_in: int,
    max_iterations: int = STABLE_MAX_ITERATIONS,
) -> int:
    """Calculate output amount for a given input.

    Fee should be subtracted from amount_in BEFORE calling this function.

    Algorithm:
        1. Calculate current invariant D
        2. Add amount_in to balances[token_index_in]
        3. Solve for new balances[token_index_out] given D
        4. Return: old_balance_out - new_balance_out - 1

    Returns:
        Output amount, 0 when the input is too small to move the balance
    """
    invariant = calculate_invariant(amp, balances, max_iterations)

    new_balances = list(balances)
    new_balances[token_index_in] = (S(balances[token_index_in]) + S(amount_in)).value

    new_balance_out = get_token_balance_given_invariant_and_all_other_balances(
        amp, new_balances, invariant, token_index_out, max_iterations
    )

    old_balance_out = balances[token_index_out]
    if new_balance_out + 1 >= old_balance_out:
        return 0
    return old_balance_out - new_balance_out - 1


def stable_calc_in_given_out(
    amp: int,
    balances: Sequence[int],
    token_index_in: int,
    token_index_out: int,
    amount_out: int,
    max_iterations: int = STABLE_MAX_ITERATIONS,
) -> int:
    """Calculate input amount for a given output.

    Fee should be added to the result AFTER calling this function.

    Algorithm:
        1. Calculate current invariant D
        2. Subtract amount_out from balances[token_index_out]
        3. Solve for new balances[token_index_in] given D
        4. Return: new_balance_in - old_balance_in + 1

    Raises:
        InsufficientLiquidity: If amount_out >= balance_out
    """
    if amount_out >= balances[token_index_out]:
        raise InsufficientLiquidity(
            f"Requested output {amount_out} exceeds balance {balances[token_index_out]}"
        )

    invariant = calculate_invariant(amp, balances, max_iterations)

    new_balances = list(balances)
    new_balances[token_index_out] = balances[token_index_out] - amount_out

    new_balance_in = get_token_balance_given_invariant_and_all_other_balances(
        amp, new_balances, invariant, token_index_in, max_iterations
    )
    return new_balance_in - balances[token_index_in] + 1


def spot_price_ratio(
    amp: int, balances: Sequence[int], invariant: int, base_index: int, quote_index: int
) -> tuple[int, int]:
    """Marginal price of base in quote as an exact (numerator, denominator).

    Derived from the partial derivatives of the invariant:

        price = x_q * (amp * n * n^n * P * x_b + AMP_PRECISION * D^(n+1))
              / (x_b * (amp * n * n^n * P * x_q + AMP_PRECISION * D^(n+1)))

    where P is the product of all balances.
    """
    n_coins = len(balances)
    product = 1
    for balance in balances:
        product *= balance
    amp_term = amp * n_coins * n_coins**n_coins * product
    d_term = AMP_PRECISION * invariant ** (n_coins + 1)
    x_b = balances[base_index]
    x_q = balances[quote_index]
    return x_q * (amp_term * x_b + d_term), x_b * (amp_term * x_q + d_term)


__all__ = [
    "AMP_PRECISION",
    "STABLE_MAX_ITERATIONS",
    "calculate_invariant",
    "get_token_balance_given_invariant_and_all_other_balances",
    "spot_price_ratio",
    "stable_calc_in_given_out",
    "stable_calc_out_given_in",
]
