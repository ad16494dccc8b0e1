"""
BillRead — utility bill OCR, extraction and anomaly-report service.
"""
