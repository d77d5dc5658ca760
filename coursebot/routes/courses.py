"""
Course catalog CRUD endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException

from coursebot.models.schemas import CourseCreate, CourseResponse, CourseUpdate
from coursebot.services.course_store import CourseStore, get_store

router = APIRouter(prefix="/api/courses", tags=["courses"])


@router.get("/", response_model=list[CourseResponse])
async def list_courses(store: CourseStore = Depends(get_store)):
    result = await store.list_courses()
    if not result.ok:
        raise HTTPException(status_code=500, detail=result.error)
    return result.data


@router.post("/", response_model=CourseResponse, status_code=201)
async def add_course(req: CourseCreate, store: CourseStore = Depends(get_store)):
    result = await store.add_course(req.model_dump())
    if not result.ok:
        raise HTTPException(status_code=500, detail=result.error)
    return result.data


@router.get("/{course_id}", response_model=CourseResponse)
async def get_course(course_id: int, store: CourseStore = Depends(get_store)):
    result = await store.get_course(course_id)
    if not result.ok:
        raise HTTPException(status_code=500, detail=result.error)
    if result.data is None:
        raise HTTPException(status_code=404, detail="Course not found")
    return result.data


@router.put("/{course_id}", response_model=CourseResponse)
async def update_course(course_id: int, req: CourseUpdate, store: CourseStore = Depends(get_store)):
    result = await store.update_course(course_id, req.model_dump(exclude_unset=True))
    if not result.ok:
        raise HTTPException(status_code=500, detail=result.error)
    if result.data is None:
        raise HTTPException(status_code=404, detail="Course not found")
    return result.data


@router.delete("/{course_id}")
async def delete_course(course_id: int, store: CourseStore = Depends(get_store)):
    result = await store.delete_course(course_id)
    if not result.ok:
        raise HTTPException(status_code=500, detail=result.error)
    if not result.data:
        raise HTTPException(status_code=404, detail="Course not found")
    return {"status": "deleted", "course_id": course_id}
