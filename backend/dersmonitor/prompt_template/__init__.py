"""
プロンプトテンプレートのパッケージ
"""
