"""Athletics API backend"""
