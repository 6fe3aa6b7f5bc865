# API Module
