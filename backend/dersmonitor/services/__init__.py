"""
評価処理のサービス群
"""
