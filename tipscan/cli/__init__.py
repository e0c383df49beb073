"""Unified command-line interface for tipscan.

Usage:
    tipscan parse "TOTAL $101.70"
    tipscan resolve receipts/ocr_json/receipt.json
    tipscan scan <image>
    tipscan tip 86.40 --percent 18 --people 3
    tipscan serve [--port]
"""
