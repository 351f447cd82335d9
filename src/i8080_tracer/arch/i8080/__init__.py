# src/i8080_tracer/arch/i8080/__init__.py
"""
Intel 8080 Architecture Package
"""
from .cpu import I8080Cpu
from .state import I8080CpuState
