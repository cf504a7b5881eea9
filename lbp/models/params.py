"""Pydantic models for pool creation parameters.

Field aliases follow the factory call of the on-chain contracts, so a
parameter blob such as

    {"poolTokenSymbol": "HPPT", "constituentTokens": [...], "tokenWeights": [...]}

can be validated directly with PoolParams.model_validate.
"""

from pydantic import BaseModel, Field, model_validator

from lbp.models.types import Uint256


class Rights(BaseModel):
    """Permission flags chosen by the pool creator.

    Defaults match the contracts' RightsManager defaults.
    """

    can_pause_swapping: bool = Field(default=False, alias="canPauseSwapping")
    can_change_swap_fee: bool = Field(default=True, alias="canChangeSwapFee")
    can_change_weights: bool = Field(default=True, alias="canChangeWeights")
    can_add_remove_tokens: bool = Field(default=False, alias="canAddRemoveTokens")
    can_whitelist_lps: bool = Field(default=False, alias="canWhitelistLPs")
    can_change_cap: bool = Field(default=False, alias="canChangeCap")

    model_config = {"populate_by_name": True, "frozen": True}


class PoolParams(BaseModel):
    """Tokens, initial balances, weights and fee of a new pool.

    Balances are in wei; weights and the swap fee are 18-decimal fixed point.
    Weight, balance and fee bounds are checked when the pool is created.
    """

    pool_token_symbol: str = Field(alias="poolTokenSymbol")
    pool_token_name: str = Field(default="", alias="poolTokenName")
    constituent_tokens: list[str] = Field(alias="constituentTokens")
    token_balances: list[Uint256] = Field(alias="tokenBalances")
    token_weights: list[Uint256] = Field(alias="tokenWeights")
    swap_fee: Uint256 = Field(alias="swapFee")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def _check_lengths(self) -> "PoolParams":
        n = len(self.constituent_tokens)
        if len(self.token_balances) != n or len(self.token_weights) != n:
            raise ValueError(
                "constituentTokens, tokenBalances and tokenWeights must have the same length"
            )
        if len(set(self.constituent_tokens)) != n:
            raise ValueError("constituentTokens must be unique")
        return self
