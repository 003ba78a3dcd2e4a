import attrs


@attrs.frozen
class Commission:
    """Split of an order total between the platform and the selling artist"""

    total: int
    platform_fee: int
    payout_amount: int

    @classmethod
    def calculate(cls, *, total: int, fee_percent: int) -> 'Commission':
        if not 0 <= fee_percent <= 100:
            raise ValueError(f'fee_percent must be within 0..100, got {fee_percent}')
        # Integer yen: the platform fee is rounded down, the artist keeps the remainder
        platform_fee = total * fee_percent // 100
        return cls(total=total, platform_fee=platform_fee, payout_amount=total - platform_fee)
