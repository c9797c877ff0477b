"""
Lease Verifier — Authenticity and name checks for uploaded rental agreements.

Architecture: Scoped storage → Text extraction → LLM assessment → Strict parse → Decision
Philosophy:  Let the model read the lease. Let only code decide the verdict.
"""

__version__ = "1.0.0"
