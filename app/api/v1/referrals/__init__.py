"""Referrals API"""
