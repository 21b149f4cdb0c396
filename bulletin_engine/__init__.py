# 学生成绩汇总、排名与成绩单引擎
__version__ = "1.0.0"
