"""Utilities package for the FoodCost application."""
