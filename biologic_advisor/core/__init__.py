"""
Core decision layers: clinical classification, dosing, cost, LLM ranking,
evidence search and the recommendation cascade.
"""
