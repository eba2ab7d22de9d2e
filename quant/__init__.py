"""技术指标、交易信号与回测引擎"""
