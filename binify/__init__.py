"""binify — 将 Swift 源码包预编译为多平台动态 XCFramework"""

__version__ = "1.0.0"
