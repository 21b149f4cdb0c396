# HTTP接口
