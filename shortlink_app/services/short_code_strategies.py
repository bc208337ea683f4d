"""
Short code generation strategies for the short-link service.
Uses Strategy Pattern to allow different generation algorithms.
"""

import secrets
import string
from abc import ABC, abstractmethod

URL_SAFE_ALPHABET = string.ascii_letters + string.digits + "_-"


class ShortCodeStrategy(ABC):
    """Abstract base class for short code generation strategies"""
    
    @abstractmethod
    def generate(self) -> str:
        """
        Generate a candidate identifier.
        
        Uniqueness is not checked here: the store rejects a colliding
        insert and the Shortener asks for a fresh candidate.
        """
        pass


class RandomShortCodeStrategy(ShortCodeStrategy):
    """
    Fixed-length random identifier over a URL-safe alphabet.
    
    With the default 64-character alphabet and length 7 there are
    64^7 (about 4.4e12) possible identifiers, so collisions are rare
    and handled by retrying the insert.
    """
    
    def __init__(self, length: int = 7, alphabet: str = URL_SAFE_ALPHABET):
        if length <= 0:
            raise ValueError("Identifier length must be positive")
        self.length = length
        self.alphabet = alphabet
    
    def generate(self) -> str:
        """Generate a random identifier from a cryptographic source"""
        return "".join(secrets.choice(self.alphabet) for _ in range(self.length))
