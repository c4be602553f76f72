"""Praetor timesheet core - recurring entries, weekly grid and daily goals"""
