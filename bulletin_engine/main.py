from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bulletin_engine import config  # noqa: F401  日志配置
from bulletin_engine import __version__
from bulletin_engine.api.management_api import router as management_router
from bulletin_engine.api.reporting_api import router as reporting_router

app = FastAPI(
    title="成绩单计算服务",
    description="学生平均分、排名与成绩单数据API文档",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

# 配置CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册路由
app.include_router(management_router, prefix="/api/v1/management", tags=["管理API"])
app.include_router(reporting_router, prefix="/api/v1/reports", tags=["报告API"])


@app.get("/")
async def root():
    return {
        "message": "成绩单计算服务",
        "version": __version__,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("bulletin_engine.main:app", host="0.0.0.0", port=8000, reload=False)
