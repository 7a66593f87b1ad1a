"""Logging and configuration shared by the compiler packages"""
