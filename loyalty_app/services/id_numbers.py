# loyalty_app/services/id_numbers.py
import hashlib


def is_valid_sa_id_number(id_number: str) -> bool:
    """
    Check a South African ID number (13 digits, last one a check digit).

    Check digit:
      1. sum the digits at odd positions (1st, 3rd, ... 11th)
      2. join the digits at even positions (2nd, 4th, ... 12th) into a
         number, double it, and add its digits to the sum
      3. check = (10 - sum % 10) % 10
    """
    if len(id_number) != 13 or not id_number.isdigit():
        return False

    digits = [int(c) for c in id_number]
    total = sum(digits[i] for i in range(0, 12, 2))

    evens = "".join(id_number[i] for i in range(1, 12, 2))
    doubled = str(int(evens) * 2)
    total += sum(int(c) for c in doubled)

    return (10 - total % 10) % 10 == digits[12]


def hash_id_number(id_number: str) -> str:
    """One-way hash stored on the profile instead of the raw ID number."""
    return hashlib.sha256(id_number.encode("utf-8")).hexdigest()
