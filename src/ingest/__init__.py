"""Source ingestion and record assembly.

This package pages through the ITIS source tables and assembles each
taxonomic unit into one denormalized record with its hierarchy.
"""
