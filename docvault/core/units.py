BYTES_IN_MB = 2 ** 20


def bytes_to_mb(value: int, round_result: bool = True) -> float:
    """Перевод байтов в мегабайты (1 МБ = 2^20 байт)"""
    mb = value / BYTES_IN_MB
    if round_result:
        return round(mb, 2)
    return mb


def mb_to_bytes(value: int) -> int:
    """Перевод мегабайтов в байты"""
    return int(value * BYTES_IN_MB)
