"""Approval requests API"""
